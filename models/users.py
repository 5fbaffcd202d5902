from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean)
from .mixins import CreatedAtMixin


class User(Base, CreatedAtMixin):
    """Back-office account. Shoppers check out anonymously and have no row here."""
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, unique=True, nullable=False)
    full_name = Column(String)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    role = Column(String, default="admin", nullable=False)
