from core.database import Base
from sqlalchemy import (Column, Integer, String, Text, ForeignKey, Numeric, Enum, JSON)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

TRANSACTION_STATUSES = ("pending", "completed", "failed")


class MpesaTransaction(Base, CreatedAtMixin, UpdatedAtMixin):
    """
    One row per accepted STK push.

    checkout_request_id is what the gateway sends back in the asynchronous
    callback, so it is indexed; the callback is looked up by it.
    """
    __tablename__ = "mpesa_transactions"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)

    #relationships
    order = relationship("Order", back_populates="transactions")

    merchant_request_id = Column(String(64))
    checkout_request_id = Column(String(64), index=True)
    phone_number = Column(String(20), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    account_reference = Column(String(64), nullable=False)
    mpesa_receipt_number = Column(String(64), index=True)
    result_code = Column(String(16))
    result_desc = Column(Text)
    status = Column(Enum(*TRANSACTION_STATUSES, name="transaction_status"), default="pending", nullable=False)
    callback_data = Column(JSON)
    status_result = Column(JSON)
