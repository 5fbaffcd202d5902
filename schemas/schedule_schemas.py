from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

Frequency = Literal["daily", "weekly", "bi-weekly", "monthly", "quarterly"]


def _validate_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parsed = datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValueError('scheduled_time must be in HH:MM format')
    return parsed.strftime("%H:%M")


class ScheduleRequest(BaseModel):
    email: EmailStr = Field(max_length=255)
    frequency: Frequency
    scheduled_time: Optional[str] = None
    is_enabled: Optional[bool] = None

    @field_validator('scheduled_time')
    @classmethod
    def validate_time(cls, value):
        return _validate_time(value)


class ScheduleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    frequency: str
    scheduled_time: str
    is_enabled: bool
    last_run_at: Optional[datetime] = None
    next_run_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ProcessedSchedule(BaseModel):
    id: int
    email: str
    frequency: str
    executed_at: datetime
    orders_archived: int


class TriggerResult(BaseModel):
    processed: List[ProcessedSchedule]
