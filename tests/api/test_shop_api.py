from decimal import Decimal

from models.mpesa_transactions import MpesaTransaction
from models.orders import Order


def order_body(location, *lines):
    return {
        "customer_name": "Jane Wanjiku",
        "mpesa_number": "0712345678",
        "delivery_location_id": location.id,
        "description": "Deliver to Moi Avenue shop",
        "items": [
            {"product_id": product.id, "size": "42", "color": "Black", "quantity": quantity, "price": 1}
            for product, quantity in lines
        ],
    }


async def test_storefront(client, make_product, location):
    make_product("Air Max", stock=3)
    make_product("Sold Out", stock=0)

    for path in ("/", "/shop"):
        response = await client.get(path)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [p["name"] for p in body["data"]["products"]] == ["Air Max"]
        assert body["data"]["categories"][0]["products_count"] == 1
        assert body["data"]["locations"][0]["town"] == "Nairobi"


async def test_place_order(client, session, make_product, location, fake_mpesa):
    shoe = make_product("Air Max", price="10.00", stock=5)
    socks = make_product("Socks", price="5.00", stock=5)

    response = await client.post("/shop/order", json=order_body(location, (shoe, 2), (socks, 1)))

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert Decimal(body["data"]["amount"]) == Decimal("325.00")
    assert body["data"]["stk_sent"] is True
    assert body["data"]["checkout_request_id"] == "ws_CO_191220191020363925"

    order = session.query(Order).filter(Order.uuid == body["data"]["uuid"]).one()
    assert order.payment_status == "pending"
    assert fake_mpesa.calls[0][1]["amount"] == 325
    assert session.query(MpesaTransaction).count() == 1


async def test_order_kept_when_stk_fails(client, session, make_product, location, fake_mpesa):
    from core.exceptions import GatewayError
    fake_mpesa.error = GatewayError("down")
    shoe = make_product("Air Max")

    response = await client.post("/shop/order", json=order_body(location, (shoe, 1)))

    assert response.status_code == 201
    assert response.json()["data"]["stk_sent"] is False
    assert session.query(Order).count() == 1
    assert session.query(MpesaTransaction).count() == 0


async def test_insufficient_stock_is_409(client, session, make_product, location):
    shoe = make_product("Air Max", stock=1)

    response = await client.post("/shop/order", json=order_body(location, (shoe, 2)))

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert session.query(Order).count() == 0


async def test_invalid_phone_is_validation_error(client, make_product, location):
    shoe = make_product("Air Max")
    body = order_body(location, (shoe, 1))
    body["mpesa_number"] = "12345abcde"

    response = await client.post("/shop/order", json=body)

    assert response.status_code == 422
    data = response.json()
    assert data["success"] is False
    assert data["message"] == "Validation failed"
    assert any(error["field"] == "mpesa_number" for error in data["errors"])


async def test_unknown_location_is_404(client, make_product):
    shoe = make_product("Air Max")

    response = await client.post("/shop/order", json={
        "customer_name": "Jane", "mpesa_number": "0712345678", "delivery_location_id": 42,
        "description": "x", "items": [{"product_id": shoe.id, "size": "42", "color": "Black", "quantity": 1}],
    })

    assert response.status_code == 404
    assert response.json()["message"] == "Delivery location not found"


async def test_order_status_by_uuid(client, make_product, location):
    shoe = make_product("Air Max")
    placed = (await client.post("/shop/order", json=order_body(location, (shoe, 1)))).json()["data"]

    response = await client.get(f"/shop/orders/{placed['uuid']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["payment_status"] == "pending"
    assert data["tracking_number"] == placed["tracking_number"]
    assert "mpesa_number" not in data


async def test_unknown_order_uuid(client):
    response = await client.get("/shop/orders/does-not-exist")
    assert response.status_code == 404
