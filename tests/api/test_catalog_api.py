from io import BytesIO

from PIL import Image

from models.categories import Category


async def test_admin_routes_require_token(client, session):
    for path in ("/categories", "/products", "/orders", "/delivery-locations", "/transactions", "/jobs"):
        response = await client.get(path)
        assert response.status_code == 401, path
        assert response.json()["success"] is False


async def test_invalid_token_rejected(client, session):
    response = await client.get("/categories", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


async def test_category_crud(client, admin_headers):
    created = await client.post("/categories", json={"name": "Shoes"}, headers=admin_headers)
    assert created.status_code == 201
    parent_id = created.json()["data"]["id"]

    child = await client.post("/categories", json={"name": "Sneakers", "parent_id": parent_id},
                              headers=admin_headers)
    assert child.json()["data"]["parent"]["name"] == "Shoes"

    listing = await client.get("/categories", headers=admin_headers)
    assert listing.json()["data"]["total"] == 2

    duplicate = await client.post("/categories", json={"name": "shoes"}, headers=admin_headers)
    assert duplicate.status_code == 409

    renamed = await client.put(f"/categories/{parent_id}", json={"name": "Footwear"}, headers=admin_headers)
    assert renamed.json()["data"]["name"] == "Footwear"


async def test_delete_category_with_child_is_409(client, session, admin_headers):
    parent = Category(name="Shoes")
    session.add(parent)
    session.flush()
    session.add(Category(name="Sneakers", parent_id=parent.id))
    session.commit()

    response = await client.delete(f"/categories/{parent.id}", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert session.query(Category).count() == 2


async def test_missing_category_is_404(client, admin_headers):
    response = await client.get("/categories/999", headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Category not found", "data": None}


async def test_product_crud(client, category, admin_headers):
    body = {"category_id": category.id, "name": "Air Max 90", "description": "Classic", "price": "4500.00",
            "stock": 4, "colors": [" Black ", "White", ""], "sizes": ["42"]}

    created = await client.post("/products", json=body, headers=admin_headers)

    assert created.status_code == 201
    product = created.json()["data"]
    assert product["slug"] == "air-max-90"
    assert product["sku"].startswith("SKU-")
    assert product["colors"] == ["Black", "White"]
    assert product["category"]["name"] == "Sneakers"

    body["stock"] = 0
    updated = await client.put(f"/products/{product['id']}", json=body, headers=admin_headers)
    assert updated.json()["data"]["stock"] == 0

    deleted = await client.delete(f"/products/{product['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    missing = await client.get(f"/products/{product['id']}", headers=admin_headers)
    assert missing.status_code == 404


async def test_product_without_colors_is_rejected(client, category, admin_headers):
    response = await client.post("/products", json={
        "category_id": category.id, "name": "Air Max", "description": "x", "price": "10",
        "stock": 1, "colors": [], "sizes": ["42"],
    }, headers=admin_headers)

    assert response.status_code == 422


async def test_upload_images(client, make_product, admin_headers):
    product = make_product("Air Max")
    buffer = BytesIO()
    Image.new("RGB", (1600, 800)).save(buffer, "JPEG")

    response = await client.post(
        f"/products/{product.id}/images",
        files=[("images", ("photo.jpg", buffer.getvalue(), "image/jpeg"))],
        headers=admin_headers,
    )

    assert response.status_code == 201
    images = response.json()["data"]["images"]
    assert len(images) == 1
    assert images[0]["path"].startswith("uploads/") and images[0]["path"].endswith(".webp")


async def test_upload_rejects_bad_extension(client, make_product, admin_headers):
    product = make_product("Air Max")

    response = await client.post(
        f"/products/{product.id}/images",
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        headers=admin_headers,
    )

    assert response.status_code == 422


async def test_delivery_locations(client, admin_headers):
    created = await client.post("/delivery-locations", json={"town": "Thika", "delivery_fee": "300"},
                                headers=admin_headers)
    assert created.status_code == 201
    location_id = created.json()["data"]["id"]

    updated = await client.put(f"/delivery-locations/{location_id}",
                               json={"town": "Thika", "delivery_fee": "350", "is_active": False},
                               headers=admin_headers)
    assert updated.json()["data"]["is_active"] is False

    listing = await client.get("/delivery-locations", headers=admin_headers)
    assert [loc["town"] for loc in listing.json()["data"]] == ["Thika"]
