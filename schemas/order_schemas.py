from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.phone import normalize_msisdn


class OrderItemRequest(BaseModel):
    product_id: int
    size: str = Field(min_length=1)
    color: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    # Accepted for compatibility with the storefront cart, never used for pricing
    price: Optional[Decimal] = Field(default=None, ge=0)


class CheckoutRequest(BaseModel):
    customer_name: str = Field(min_length=1, max_length=255)
    mpesa_number: str = Field(min_length=10, max_length=15)
    delivery_location_id: int
    description: str = Field(min_length=1)
    items: List[OrderItemRequest] = Field(min_length=1)

    @field_validator('mpesa_number')
    @classmethod
    def validate_phone(cls, value):
        try:
            normalize_msisdn(value)
        except ValueError:
            raise ValueError('Enter a valid M-Pesa number, e.g. 0712345678')
        return value.strip()


class AdminOrderItemRequest(BaseModel):
    product_id: int
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int = Field(ge=1)
    price: Optional[Decimal] = Field(default=None, ge=0)


class AdminOrderRequest(BaseModel):
    customer_name: Optional[str] = Field(default=None, max_length=255)
    mpesa_number: str = Field(min_length=1, max_length=255)
    mpesa_code: Optional[str] = Field(default=None, max_length=255)
    town: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    delivery_fee: Decimal = Field(default=Decimal("0"), ge=0)
    payment_status: Literal["pending", "paid", "failed"] = "pending"
    status: Literal["pending", "processing", "completed", "cancelled"] = "pending"
    tracking_number: Optional[str] = None
    items: List[AdminOrderItemRequest] = Field(min_length=1)


class OrderUpdateRequest(BaseModel):
    status: Literal["pending", "processing", "completed", "cancelled"]
    payment_status: Literal["pending", "paid", "failed"]
    tracking_number: Optional[str] = None
    send_dispatch: bool = False


class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    size: Optional[str] = None
    color: Optional[str] = None
    price: Decimal
    quantity: int


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: str
    customer_name: Optional[str] = None
    mpesa_number: str
    mpesa_code: Optional[str] = None
    amount: Decimal
    delivery_fee: Decimal
    payment_status: str
    status: str
    tracking_number: Optional[str] = None
    town: str
    description: str
    created_at: Optional[datetime] = None
    items: List[ItemOut] = []


class OrderStatusOut(BaseModel):
    """What a shopper may see about their own order."""
    model_config = ConfigDict(from_attributes=True)

    uuid: str
    amount: Decimal
    payment_status: str
    status: str
    tracking_number: Optional[str] = None
    town: str


class CheckoutResult(BaseModel):
    uuid: str
    amount: Decimal
    delivery_fee: Decimal
    town: str
    tracking_number: str
    stk_sent: bool
    stk_message: str
    checkout_request_id: Optional[str] = None
