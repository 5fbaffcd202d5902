from core.database import Base
from sqlalchemy import (Column, Integer, String, ForeignKey)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin


class ProductImage(Base, CreatedAtMixin):
    __tablename__ = "product_images"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    #relationships
    product = relationship("Product", back_populates="images")

    # relative to the public root, e.g. "uploads/1717000000_abc.webp"
    path = Column(String(255), nullable=False)
