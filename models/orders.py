from core.database import Base
from sqlalchemy.orm import relationship
from sqlalchemy import (Column, Integer, String, Text, Numeric, Enum)
from .mixins import CreatedAtMixin, UpdatedAtMixin, SoftDeleteMixin

ORDER_STATUSES = ("pending", "processing", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed")


class Order(Base, CreatedAtMixin, UpdatedAtMixin, SoftDeleteMixin):
    __tablename__ = "orders"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    items = relationship("Item", back_populates="order", cascade="all, delete-orphan")
    transactions = relationship("MpesaTransaction", back_populates="order")

    # external-facing id, never expose the integer pk to shoppers
    uuid = Column(String(36), unique=True, nullable=False, index=True)
    customer_name = Column(String(255))
    mpesa_number = Column(String(20), nullable=False)
    mpesa_code = Column(String(64))
    amount = Column(Numeric(10, 2), nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    payment_status = Column(Enum(*PAYMENT_STATUSES, name="payment_status"), default="pending", nullable=False)
    status = Column(Enum(*ORDER_STATUSES, name="order_status"), default="pending", nullable=False)
    tracking_number = Column(String(32))
    town = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
