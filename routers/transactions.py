from typing import Any, Dict, Optional

from fastapi import APIRouter, Query
from models.mpesa_transactions import MpesaTransaction
from utils.deps import db_dependency, admin_dependency, payment_dependency
from schemas.common import ApiResponse, Page, ok, paginate
from schemas.mpesa_schemas import MpesaSettingsOut, TransactionOut


router = APIRouter(tags=["transactions"])


@router.get("/transactions", response_model=ApiResponse[Page[TransactionOut]])
async def list_transactions(admin: admin_dependency, db: db_dependency,
                            status: Optional[str] = None,
                            page: int = Query(1, ge=1), per_page: int = Query(15, ge=1, le=100)):
    query = db.query(MpesaTransaction)
    if status:
        query = query.filter(MpesaTransaction.status == status)
    query = query.order_by(MpesaTransaction.created_at.desc(), MpesaTransaction.id.desc())
    return ok(paginate(query, page, per_page))


@router.get("/settings/mpesa", response_model=ApiResponse[MpesaSettingsOut])
def mpesa_settings(admin: admin_dependency, payments: payment_dependency):
    return ok({"stats": payments.stats(), "balance": payments.cached_balance()})


@router.post("/settings/mpesa/balance", response_model=ApiResponse[Dict[str, Any]])
def refresh_balance(admin: admin_dependency, payments: payment_dependency):
    """Queue a balance query; the figures arrive later on /mpesa/balance/callback."""
    response = payments.request_balance()
    return ok(
        {"ConversationID": response.ConversationID, "ResponseDescription": response.ResponseDescription},
        "Balance query submitted"
    )
