from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey, Numeric)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin


class Item(Base, CreatedAtMixin):
    __tablename__ = "items"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    #relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="items")

    size = Column(String(64))
    color = Column(String(64))
    # copied from Product.price when the order is placed, never recomputed
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    @property
    def subtotal(self):
        return self.price * self.quantity
