from core.database import Base
from sqlalchemy import (Column, Integer, String, Boolean, DateTime, Enum)
from .mixins import CreatedAtMixin, UpdatedAtMixin

FREQUENCIES = ("daily", "weekly", "bi-weekly", "monthly", "quarterly")


class Schedule(Base, CreatedAtMixin, UpdatedAtMixin):
    __tablename__ = "schedules"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    email = Column(String(255), unique=True, nullable=False)
    frequency = Column(Enum(*FREQUENCIES, name="schedule_frequency"), nullable=False)
    # local time of day, "HH:MM"
    scheduled_time = Column(String(5), nullable=False, default="08:00")
    is_enabled = Column(Boolean, default=True, nullable=False)
    last_run_at = Column(DateTime, nullable=True)
    next_run_at = Column(DateTime, nullable=True)
