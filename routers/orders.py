from datetime import datetime, timedelta

from fastapi import APIRouter, BackgroundTasks, Query, status
from utils.deps import db_dependency, admin_dependency, unmanaged_whatsapp_dependency
from schemas.common import ApiResponse, Page, ok, paginate
from schemas.order_schemas import AdminOrderRequest, OrderOut, OrderUpdateRequest
from services.order_service import OrderService
from services.whatsapp_client import WhatsAppClient
from core.exceptions import GatewayError
from utils.phone import normalize_msisdn
from utils.logger import get_logger

logger = get_logger(__name__)

# Days between dispatch and the delivery date quoted in the WhatsApp message
DELIVERY_LEAD_DAYS = 2


router = APIRouter(
    prefix="/orders",
    tags=["orders"]
)


def send_dispatch_message(whatsapp: WhatsAppClient, to: str, name: str, tracking_number: str, town: str):
    delivery_date = (datetime.now() + timedelta(days=DELIVERY_LEAD_DAYS)).strftime("%d %b %Y")
    try:
        whatsapp.send_dispatch(to, name, tracking_number, town, delivery_date)
    except GatewayError as e:
        # The order update is already committed; a failed notification is only logged
        logger.error(
            f"Dispatch notification failed: {e.message}",
            extra={"tracking_number": tracking_number, "recipient": to}
        )
    finally:
        whatsapp.close()


@router.get("", response_model=ApiResponse[Page[OrderOut]])
async def list_orders(admin: admin_dependency, db: db_dependency,
                      page: int = Query(1, ge=1), per_page: int = Query(10, ge=1, le=100)):
    return ok(paginate(OrderService.list_orders(db), page, per_page))


@router.get("/{order_id}", response_model=ApiResponse[OrderOut])
async def show_order(order_id: int, admin: admin_dependency, db: db_dependency):
    return ok(OrderService.get_order(db, order_id))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[OrderOut])
async def create_order(body: AdminOrderRequest, admin: admin_dependency, db: db_dependency):
    return ok(OrderService.create_admin_order(db, body), "Order created")


@router.put("/{order_id}", response_model=ApiResponse[OrderOut])
async def update_order(order_id: int, body: OrderUpdateRequest, admin: admin_dependency, db: db_dependency,
                       whatsapp: unmanaged_whatsapp_dependency, background_tasks: BackgroundTasks):
    """
    Update status, payment status and tracking number.

    With `send_dispatch` set on a completed order, the customer gets the
    WhatsApp dispatch template after the response has been sent.
    """
    order = OrderService.update_order(db, order_id, body)

    if body.send_dispatch and order.status == "completed":
        try:
            recipient = normalize_msisdn(order.mpesa_number)
        except ValueError:
            logger.warning("Dispatch skipped, invalid phone number", extra={"order_id": order.id})
            whatsapp.close()
        else:
            background_tasks.add_task(
                send_dispatch_message, whatsapp, recipient,
                order.customer_name or "Customer", order.tracking_number or order.uuid, order.town
            )
    else:
        whatsapp.close()

    return ok(order, "Order updated")


@router.delete("/{order_id}", response_model=ApiResponse[None])
async def delete_order(order_id: int, admin: admin_dependency, db: db_dependency):
    OrderService.delete_order(db, order_id)
    return ok(message="Order deleted")
