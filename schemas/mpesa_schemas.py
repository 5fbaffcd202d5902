"""
Typed views of the payloads Daraja sends and returns.

Callbacks are decoded through these models instead of reaching into nested
dicts; a payload missing a required field raises ParseError.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import ParseError


class CallbackItem(BaseModel):
    Name: str
    Value: Any = None


class CallbackMetadataBlock(BaseModel):
    Item: List[CallbackItem] = []


class StkCallback(BaseModel):
    model_config = ConfigDict(extra="allow")

    MerchantRequestID: Optional[str] = None
    CheckoutRequestID: str
    ResultCode: int
    ResultDesc: str = ""
    CallbackMetadata: Optional[CallbackMetadataBlock] = None

    def metadata(self) -> Dict[str, Any]:
        """CallbackMetadata.Item flattened to Name -> Value."""
        if self.CallbackMetadata is None:
            return {}
        return {item.Name: item.Value for item in self.CallbackMetadata.Item}


class StkCallbackBody(BaseModel):
    stkCallback: StkCallback


class StkCallbackEnvelope(BaseModel):
    Body: StkCallbackBody


class ResultParam(BaseModel):
    Key: str
    Value: Any = None


class ResultParamBlock(BaseModel):
    ResultParameter: List[ResultParam] = []

    @field_validator('ResultParameter', mode='before')
    @classmethod
    def wrap_single(cls, value):
        # Daraja sends a bare object instead of a list when there is one parameter
        if isinstance(value, dict):
            return [value]
        return value


class GatewayResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    ResultType: Optional[int] = None
    ResultCode: int
    ResultDesc: str = ""
    OriginatorConversationID: Optional[str] = None
    ConversationID: Optional[str] = None
    TransactionID: Optional[str] = None
    ResultParameters: Optional[ResultParamBlock] = None

    def parameters(self) -> Dict[str, Any]:
        if self.ResultParameters is None:
            return {}
        return {param.Key: param.Value for param in self.ResultParameters.ResultParameter}


class GatewayResultEnvelope(BaseModel):
    Result: GatewayResult


class GatewayResponse(BaseModel):
    """Synchronous acknowledgement of an STK push, balance or status request."""
    model_config = ConfigDict(extra="allow")

    ResponseCode: Optional[str] = None
    ResponseDescription: Optional[str] = None
    MerchantRequestID: Optional[str] = None
    CheckoutRequestID: Optional[str] = None
    ConversationID: Optional[str] = None
    OriginatorConversationID: Optional[str] = None
    CustomerMessage: Optional[str] = None
    errorCode: Optional[str] = None
    errorMessage: Optional[str] = None

    @field_validator('ResponseCode', mode='before')
    @classmethod
    def code_as_string(cls, value):
        return None if value is None else str(value)

    @property
    def accepted(self) -> bool:
        return self.ResponseCode == "0"

    @property
    def description(self) -> Optional[str]:
        return self.ResponseDescription or self.errorMessage


def parse_stk_callback(payload: Any) -> StkCallback:
    try:
        return StkCallbackEnvelope.model_validate(payload).Body.stkCallback
    except ValidationError as exc:
        raise ParseError("Invalid STK callback payload", errors=exc.errors(include_url=False, include_context=False))


def parse_gateway_result(payload: Any) -> GatewayResult:
    try:
        return GatewayResultEnvelope.model_validate(payload).Result
    except ValidationError as exc:
        raise ParseError("Invalid gateway result payload", errors=exc.errors(include_url=False, include_context=False))


class GatewayAck(BaseModel):
    """Body the gateway expects back from every callback URL."""
    ResultCode: int = 0
    ResultDesc: str = "Accepted"


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: Optional[int] = None
    merchant_request_id: Optional[str] = None
    checkout_request_id: Optional[str] = None
    phone_number: str
    amount: Decimal
    account_reference: str
    mpesa_receipt_number: Optional[str] = None
    result_code: Optional[str] = None
    result_desc: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None


class TransactionStats(BaseModel):
    total_transactions: int
    completed: int
    pending: int
    failed: int
    total_amount: Decimal = Field(default=Decimal("0"))


class MpesaSettingsOut(BaseModel):
    stats: TransactionStats
    balance: Optional[Dict[str, Any]] = None
