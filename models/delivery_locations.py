from core.database import Base
from sqlalchemy import (Column, Integer, String, Numeric, Boolean)
from .mixins import CreatedAtMixin, UpdatedAtMixin


class DeliveryLocation(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "delivery_locations"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    town = Column(String(255), unique=True, nullable=False)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
