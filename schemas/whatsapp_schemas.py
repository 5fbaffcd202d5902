from datetime import date
from typing import Iterator, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import ParseError
from utils.phone import normalize_msisdn


class DispatchRequest(BaseModel):
    to: str
    name: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    delivery_date: Optional[date] = None

    @field_validator('to')
    @classmethod
    def validate_to(cls, value):
        return normalize_msisdn(value)


class MessageText(BaseModel):
    body: str


class WebhookMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sender: str = Field(alias="from")
    id: str
    type: str = "text"
    text: Optional[MessageText] = None


class ChangeValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: List[WebhookMessage] = []


class WebhookChange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    field: Optional[str] = None
    value: ChangeValue = Field(default_factory=ChangeValue)


class WebhookEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    changes: List[WebhookChange] = []


class WebhookEnvelope(BaseModel):
    """Graph API webhook body: entry[].changes[].value.messages[]."""
    model_config = ConfigDict(extra="ignore")

    object: Optional[str] = None
    entry: List[WebhookEntry] = []

    def messages(self) -> Iterator[WebhookMessage]:
        for entry in self.entry:
            for change in entry.changes:
                yield from change.value.messages


def parse_webhook(body: bytes) -> WebhookEnvelope:
    try:
        return WebhookEnvelope.model_validate_json(body)
    except ValidationError as exc:
        # the raw body is not echoed back, it may not even be text
        errors = [{"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()]
        raise ParseError("Invalid WhatsApp webhook payload", errors=errors)
