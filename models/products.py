from core.database import Base
from sqlalchemy import (Column, Integer, String, Text, ForeignKey, Numeric, Boolean, Enum, JSON)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin, UpdatedAtMixin

PRODUCT_STATUSES = ("draft", "active", "archived")


class Product(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "products"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)

    #relationships
    category = relationship("Category", back_populates="products")
    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan",
                          order_by="ProductImage.id")
    items = relationship("Item", back_populates="product")

    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, default=0, nullable=False)
    sku = Column(String(32), unique=True, nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    colors = Column(JSON, default=list)
    sizes = Column(JSON, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    status = Column(Enum(*PRODUCT_STATUSES, name="product_status"), default="active", nullable=False)
