import uuid
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from core.exceptions import NotFoundError, InsufficientStockError
from models.delivery_locations import DeliveryLocation
from models.orders import Order
from models.order_items import Item
from models.products import Product
from schemas.order_schemas import AdminOrderRequest, CheckoutRequest, OrderUpdateRequest
from utils.logger import get_logger
from utils.slug import random_code

logger = get_logger(__name__)

TRACKING_NUMBER_LENGTH = 6


class OrderService:

    @staticmethod
    def price_items(db: Session, items: Iterable) -> Tuple[List[Tuple[Product, object]], Decimal]:
        """
        Look every line up again and price it from the product row.

        Whatever price the client sent is ignored. Returns the (product, line)
        pairs and the items total.
        """
        priced = []
        total = Decimal("0")
        for line in items:
            product = db.query(Product).filter(Product.id == line.product_id).first()
            if not product:
                raise NotFoundError(f"Product {line.product_id} not found", product_id=line.product_id)
            priced.append((product, line))
            total += product.price * line.quantity
        return priced, total

    @staticmethod
    def decrement_stock(db: Session, product: Product, quantity: int):
        """
        Take `quantity` units off the product in one conditional UPDATE, so two
        concurrent checkouts can never push stock below zero.
        """
        updated = db.query(Product).filter(
            Product.id == product.id,
            Product.stock >= quantity
        ).update({Product.stock: Product.stock - quantity}, synchronize_session="evaluate")

        if updated != 1:
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}",
                product_id=product.id,
                requested=quantity
            )

    @staticmethod
    def _create_order(db: Session, priced, items_total: Decimal, delivery_fee: Decimal, **fields) -> Order:
        """Order, items and stock movements in a single transaction."""
        order = Order(
            uuid=str(uuid.uuid4()),
            amount=items_total + delivery_fee,
            delivery_fee=delivery_fee,
            **fields
        )
        if not order.tracking_number:
            order.tracking_number = random_code(TRACKING_NUMBER_LENGTH)

        try:
            db.add(order)
            db.flush()

            for product, line in priced:
                db.add(Item(
                    order_id=order.id,
                    product_id=product.id,
                    size=line.size,
                    color=line.color,
                    price=product.price,
                    quantity=line.quantity,
                ))
                OrderService.decrement_stock(db, product, line.quantity)

            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(order)
        return order

    @staticmethod
    def place_order(db: Session, request: CheckoutRequest) -> Order:
        location = db.query(DeliveryLocation).filter(
            DeliveryLocation.id == request.delivery_location_id,
            DeliveryLocation.is_active == True
        ).first()
        if not location:
            raise NotFoundError("Delivery location not found")

        priced, items_total = OrderService.price_items(db, request.items)

        order = OrderService._create_order(
            db, priced, items_total, Decimal(location.delivery_fee),
            customer_name=request.customer_name,
            mpesa_number=request.mpesa_number,
            town=location.town,
            description=request.description,
            status="pending",
            payment_status="pending",
        )

        logger.info(
            "Order placed",
            extra={"order_uuid": order.uuid, "amount": str(order.amount), "items": len(priced)}
        )
        return order

    @staticmethod
    def create_admin_order(db: Session, request: AdminOrderRequest) -> Order:
        priced, items_total = OrderService.price_items(db, request.items)

        order = OrderService._create_order(
            db, priced, items_total, request.delivery_fee,
            customer_name=request.customer_name,
            mpesa_number=request.mpesa_number,
            mpesa_code=request.mpesa_code,
            town=request.town,
            description=request.description,
            status=request.status,
            payment_status=request.payment_status,
            tracking_number=request.tracking_number,
        )

        logger.info("Order created by admin", extra={"order_uuid": order.uuid})
        return order

    @staticmethod
    def list_orders(db: Session):
        return db.query(Order).options(
            selectinload(Order.items)
        ).filter(Order.deleted_at.is_(None)).order_by(Order.created_at.desc(), Order.id.desc())

    @staticmethod
    def get_order(db: Session, order_id: int) -> Order:
        order = db.query(Order).filter(Order.id == order_id, Order.deleted_at.is_(None)).first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def get_by_uuid(db: Session, order_uuid: str) -> Order:
        order = db.query(Order).filter(Order.uuid == order_uuid, Order.deleted_at.is_(None)).first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    def update_order(db: Session, order_id: int, request: OrderUpdateRequest) -> Order:
        order = OrderService.get_order(db, order_id)

        order.status = request.status
        order.payment_status = request.payment_status
        if request.tracking_number is not None:
            order.tracking_number = request.tracking_number

        db.commit()
        db.refresh(order)

        logger.info(
            "Order updated",
            extra={"order_id": order.id, "status": order.status, "payment_status": order.payment_status}
        )
        return order

    @staticmethod
    def delete_order(db: Session, order_id: int, now: Optional[datetime] = None):
        order = OrderService.get_order(db, order_id)
        order.deleted_at = now or datetime.now()
        db.commit()
        logger.info("Order deleted", extra={"order_id": order_id})

    @staticmethod
    def archive_settled_orders(db: Session, now: Optional[datetime] = None) -> int:
        """Soft-delete orders that are paid and completed or cancelled."""
        archived = db.query(Order).filter(
            Order.deleted_at.is_(None),
            Order.status.in_(("completed", "cancelled")),
            Order.payment_status == "paid"
        ).update({Order.deleted_at: now or datetime.now()}, synchronize_session=False)
        db.commit()
        return archived
