from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from utils.deps import admin_dependency, payment_dependency, verify_mpesa_callback
from schemas.common import ApiResponse, ok
from schemas.mpesa_schemas import GatewayAck, parse_gateway_result, parse_stk_callback
from core.exceptions import ParseError
from utils.logger import get_logger, sanitize_log_data

logger = get_logger(__name__)


router = APIRouter(tags=["mpesa"])

# Everything Daraja posts back to us must be answered with ResultCode 0 or it retries
ACCEPTED = {"ResultCode": 0, "ResultDesc": "Accepted"}
INVALID = {"ResultCode": 1, "ResultDesc": "Invalid"}


@router.post("/mpesa/callback", response_model=GatewayAck, dependencies=[Depends(verify_mpesa_callback)])
def stk_callback(payments: payment_dependency, payload: Any = Body(None)):
    logger.info("M-Pesa STK callback received", extra={"payload": sanitize_log_data(payload)})

    try:
        callback = parse_stk_callback(payload)
    except ParseError as e:
        logger.warning(f"Rejected M-Pesa callback: {e.message}", extra={"errors": e.payload.get("errors")})
        return INVALID

    payments.apply_stk_callback(callback)
    return ACCEPTED


@router.post("/mpesa/balance/callback", response_model=GatewayAck, dependencies=[Depends(verify_mpesa_callback)])
def balance_callback(payments: payment_dependency, payload: Any = Body(None)):
    logger.info("M-Pesa balance result received", extra={"payload": sanitize_log_data(payload)})

    try:
        result = parse_gateway_result(payload)
    except ParseError as e:
        logger.warning(f"Ignored M-Pesa balance result: {e.message}")
        return ACCEPTED

    payments.store_balance(result)
    return ACCEPTED


@router.post("/mpesa/status/result", response_model=GatewayAck, dependencies=[Depends(verify_mpesa_callback)])
def status_result(payments: payment_dependency, payload: Any = Body(None)):
    logger.info("M-Pesa status result received", extra={"payload": sanitize_log_data(payload)})

    try:
        result = parse_gateway_result(payload)
    except ParseError as e:
        logger.warning(f"Ignored M-Pesa status result: {e.message}")
        return ACCEPTED

    payments.apply_status_result(result)
    return ACCEPTED


@router.post("/mpesa/timeout", response_model=GatewayAck, dependencies=[Depends(verify_mpesa_callback)])
async def queue_timeout(payload: Any = Body(None)):
    logger.warning("M-Pesa request timed out in queue", extra={"payload": sanitize_log_data(payload)})
    return ACCEPTED


@router.get("/mpesa/status/{identifier}", response_model=ApiResponse[Dict[str, Any]])
def transaction_status(identifier: str, admin: admin_dependency, payments: payment_dependency):
    """Ask Daraja for the status of a receipt; the answer arrives on /mpesa/status/result."""
    response = payments.request_status(identifier)
    return ok(
        {"ConversationID": response.ConversationID, "ResponseDescription": response.ResponseDescription},
        "Status query submitted"
    )


@router.get("/api/mpesa/balance", response_model=ApiResponse[Optional[Dict[str, Any]]])
async def cached_balance(admin: admin_dependency, payments: payment_dependency):
    balance = payments.cached_balance()
    if balance is None:
        return ok(None, "No balance available yet")
    return ok(balance)
