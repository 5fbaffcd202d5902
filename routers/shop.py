from fastapi import APIRouter, Request, status
from utils.deps import db_dependency, payment_dependency
from schemas.common import ApiResponse, ok
from schemas.catalog_schemas import Storefront
from schemas.order_schemas import CheckoutRequest, CheckoutResult, OrderStatusOut
from services.catalog_service import StorefrontService
from services.order_service import OrderService
from middleware.rate_limiter import limiter
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(tags=["shop"])


@router.get("/", response_model=ApiResponse[Storefront])
@router.get("/shop", response_model=ApiResponse[Storefront])
async def storefront(db: db_dependency):
    return ok(StorefrontService.storefront(db))


@router.post("/shop/order", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[CheckoutResult])
@limiter.limit("10/minute")
def place_order(request: Request, body: CheckoutRequest, db: db_dependency, payments: payment_dependency):
    """
    Place an order and prompt the customer's phone for payment.

    The order is kept even when the STK push fails; `stk_sent` tells the
    shopper whether to expect the M-Pesa prompt.
    """
    order = OrderService.place_order(db, body)

    stk = payments.initiate_stk_push(order, body.mpesa_number, order.amount)

    result = CheckoutResult(
        uuid=order.uuid,
        amount=order.amount,
        delivery_fee=order.delivery_fee,
        town=order.town,
        tracking_number=order.tracking_number,
        stk_sent=stk.success,
        stk_message=stk.message,
        checkout_request_id=stk.checkout_request_id,
    )
    message = "Order placed" if stk.success else "Order placed, payment prompt not sent"
    return ok(result, message)


@router.get("/shop/orders/{order_uuid}", response_model=ApiResponse[OrderStatusOut])
async def order_status(order_uuid: str, db: db_dependency):
    return ok(OrderService.get_by_uuid(db, order_uuid))
