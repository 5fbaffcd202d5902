from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_id: Optional[int] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, value):
        value = value.strip()
        if not value:
            raise ValueError('Name cannot be empty')
        return value


class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: Optional[int] = None
    parent: Optional[CategoryRef] = None
    created_at: Optional[datetime] = None


class ProductImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    path: str


def _clean_options(values: List[str]) -> List[str]:
    cleaned = [v.strip() for v in values if v and v.strip()]
    if not cleaned:
        raise ValueError('At least one option is required')
    return cleaned


class ProductRequest(BaseModel):
    category_id: int
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(ge=0)
    colors: List[str]
    sizes: List[str]
    is_active: bool = True
    status: Literal["draft", "active", "archived"] = "active"

    @field_validator('colors', 'sizes')
    @classmethod
    def validate_options(cls, value):
        return _clean_options(value)


class ProductUpdateRequest(ProductRequest):
    removed_image_ids: List[int] = []


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    category: Optional[CategoryRef] = None
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    sku: str
    slug: str
    colors: List[str] = []
    sizes: List[str] = []
    is_active: bool
    status: str
    images: List[ProductImageOut] = []


class DeliveryLocationRequest(BaseModel):
    town: str = Field(min_length=1, max_length=255)
    delivery_fee: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True


class DeliveryLocationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    town: str
    delivery_fee: Decimal
    is_active: bool


class CategoryCount(BaseModel):
    id: int
    name: str
    parent_id: Optional[int] = None
    products_count: int


class Storefront(BaseModel):
    products: List[ProductOut]
    categories: List[CategoryCount]
    locations: List[DeliveryLocationOut]
