from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.config import Settings
from core.exceptions import GatewayError
from models.orders import Order
from models.mpesa_transactions import MpesaTransaction
from schemas.mpesa_schemas import GatewayResult, StkCallback
from services.mpesa_client import MpesaClient, with_query_token
from utils.cache import TTLCache
from utils.logger import get_logger
from utils.phone import normalize_msisdn

logger = get_logger(__name__)

BALANCE_CACHE_KEY = "mpesa_account_balance"


@dataclass
class StkPushResult:
    success: bool
    message: str
    checkout_request_id: Optional[str] = None


def gateway_amount(amount: Decimal) -> int:
    """Daraja only takes whole shillings; round up so an order is never under-charged."""
    return int(Decimal(amount).to_integral_value(rounding=ROUND_CEILING))


class PaymentService:
    """
    M-Pesa payment flow: starts STK pushes for orders and applies the
    gateway's asynchronous results to transactions and orders.
    """

    def __init__(self, db: Session, settings: Settings, client: Optional[MpesaClient] = None,
                 cache: Optional[TTLCache] = None):
        self.db = db
        self.settings = settings
        self.client = client
        self.cache = cache

    def initiate_stk_push(self, order: Order, phone_number: str, amount: Decimal) -> StkPushResult:
        """
        Prompt the customer's phone for payment of `amount` against `order`.

        Never raises: the order already exists, so any gateway problem is
        reported back as a failed result and nothing is persisted.
        """
        try:
            phone = normalize_msisdn(phone_number)
        except ValueError:
            return StkPushResult(success=False, message="Invalid M-Pesa number")

        whole_amount = gateway_amount(amount)
        callback_url = with_query_token(self.settings.MPESA_CALLBACK_URL, self.settings.MPESA_CALLBACK_TOKEN)

        try:
            response = self.client.stk_push(
                phone=phone,
                amount=whole_amount,
                account_reference=order.tracking_number,
                callback_url=callback_url,
                description=f"Order {order.tracking_number}"
            )
        except GatewayError as e:
            logger.error(
                f"M-Pesa STK push error: {e.message}",
                extra={"order_uuid": order.uuid}
            )
            return StkPushResult(success=False, message="Payment service temporarily unavailable")

        if not response.accepted or not response.CheckoutRequestID:
            logger.warning(
                "M-Pesa STK push rejected",
                extra={"order_uuid": order.uuid, "response_code": response.ResponseCode,
                       "description": response.description}
            )
            return StkPushResult(success=False, message=response.description or "Failed to send M-Pesa prompt")

        transaction = MpesaTransaction(
            order_id=order.id,
            merchant_request_id=response.MerchantRequestID,
            checkout_request_id=response.CheckoutRequestID,
            phone_number=phone,
            amount=whole_amount,
            account_reference=order.tracking_number,
            status="pending",
        )
        self.db.add(transaction)
        self.db.commit()

        logger.info(
            "M-Pesa STK push accepted",
            extra={"order_uuid": order.uuid, "checkout_request_id": response.CheckoutRequestID}
        )

        return StkPushResult(
            success=True,
            message="Check your phone for M-Pesa prompt",
            checkout_request_id=response.CheckoutRequestID
        )

    def apply_stk_callback(self, callback: StkCallback) -> Optional[MpesaTransaction]:
        """
        Record the outcome of an STK push.

        Returns the transaction, or None when the checkout request id is
        unknown. A transaction that already left `pending` is returned
        untouched, so a replayed callback cannot flip a settled payment.
        """
        transaction = self.db.query(MpesaTransaction).filter(
            MpesaTransaction.checkout_request_id == callback.CheckoutRequestID
        ).first()

        if not transaction:
            logger.warning(
                "M-Pesa callback for unknown transaction",
                extra={"checkout_request_id": callback.CheckoutRequestID}
            )
            return None

        if transaction.status != "pending":
            logger.warning(
                "Duplicate M-Pesa callback ignored",
                extra={"checkout_request_id": callback.CheckoutRequestID, "status": transaction.status}
            )
            return transaction

        metadata = callback.metadata()
        receipt = metadata.get("MpesaReceiptNumber")
        succeeded = callback.ResultCode == 0

        transaction.result_code = str(callback.ResultCode)
        transaction.result_desc = callback.ResultDesc
        transaction.mpesa_receipt_number = str(receipt) if receipt is not None else None
        transaction.status = "completed" if succeeded else "failed"
        transaction.callback_data = callback.model_dump(mode="json")

        order = transaction.order
        if order is not None:
            if succeeded:
                order.payment_status = "paid"
                order.mpesa_code = transaction.mpesa_receipt_number
            elif order.payment_status == "pending":
                order.payment_status = "failed"

        self.db.commit()

        logger.info(
            "M-Pesa callback applied",
            extra={
                "checkout_request_id": callback.CheckoutRequestID,
                "result_code": callback.ResultCode,
                "order_id": transaction.order_id,
            }
        )
        return transaction

    def request_balance(self):
        response = self.client.account_balance()
        if not response.accepted:
            raise GatewayError(response.description or "Failed to query balance")
        return response

    def store_balance(self, result: GatewayResult) -> Optional[Dict[str, Any]]:
        if result.ResultCode != 0:
            logger.warning(
                "M-Pesa balance query failed",
                extra={"result_code": result.ResultCode, "result_desc": result.ResultDesc}
            )
            return None

        balance = result.parameters()
        self.cache.set(BALANCE_CACHE_KEY, balance, self.settings.BALANCE_CACHE_SECONDS)
        logger.info("M-Pesa balance stored", extra={"balance": balance})
        return balance

    def cached_balance(self) -> Optional[Dict[str, Any]]:
        return self.cache.get(BALANCE_CACHE_KEY)

    def request_status(self, identifier: str):
        response = self.client.transaction_status(identifier)
        if not response.accepted:
            raise GatewayError(response.description or "Failed to query transaction status")
        return response

    def apply_status_result(self, result: GatewayResult) -> Optional[MpesaTransaction]:
        params = result.parameters()
        receipt = params.get("ReceiptNo") or result.TransactionID
        if not receipt:
            logger.warning("M-Pesa status result without receipt number")
            return None

        transaction = self.db.query(MpesaTransaction).filter(
            MpesaTransaction.mpesa_receipt_number == str(receipt)
        ).first()

        if not transaction:
            logger.warning("M-Pesa status result for unknown receipt", extra={"receipt": receipt})
            return None

        transaction.status_result = {
            "ResultCode": result.ResultCode,
            "ResultDesc": result.ResultDesc,
            "parameters": params,
        }
        self.db.commit()
        return transaction

    def stats(self) -> dict:
        counts = dict(
            self.db.query(MpesaTransaction.status, func.count(MpesaTransaction.id))
            .group_by(MpesaTransaction.status)
            .all()
        )
        total_amount = self.db.query(func.coalesce(func.sum(MpesaTransaction.amount), 0)).filter(
            MpesaTransaction.status == "completed"
        ).scalar()

        return {
            "total_transactions": sum(counts.values()),
            "completed": counts.get("completed", 0),
            "pending": counts.get("pending", 0),
            "failed": counts.get("failed", 0),
            "total_amount": Decimal(str(total_amount)),
        }
