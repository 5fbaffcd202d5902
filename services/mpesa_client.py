import base64
import time
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode, urlparse, urlunparse, parse_qsl

import httpx

from core.config import Settings
from core.exceptions import GatewayError
from schemas.mpesa_schemas import GatewayResponse
from utils.logger import get_logger, sanitize_log_data

logger = get_logger(__name__)

# Refresh the OAuth token this many seconds before Daraja expires it
TOKEN_EXPIRY_MARGIN = 60


def with_query_token(url: str, token: str) -> str:
    if not token:
        return url
    parts = urlparse(url)
    query = dict(parse_qsl(parts.query))
    query["token"] = token
    return urlunparse(parts._replace(query=urlencode(query)))


class MpesaClient:
    """
    Thin client for the Safaricom Daraja API.

    Handles the OAuth client-credentials token and builds the three requests
    the shop needs: STK push, account balance and transaction status. Each call
    returns the gateway's synchronous acknowledgement; the actual outcome
    arrives later on the configured callback URLs.
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self.http = http_client or httpx.Client(
            base_url=settings.MPESA_BASE_URL,
            timeout=settings.MPESA_TIMEOUT_SECONDS
        )
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def close(self):
        self.http.close()

    @staticmethod
    def timestamp(now: Optional[datetime] = None) -> str:
        return (now or datetime.now()).strftime("%Y%m%d%H%M%S")

    def stk_password(self, timestamp: str) -> str:
        raw = f"{self.settings.MPESA_SHORTCODE}{self.settings.MPESA_PASSKEY}{timestamp}"
        return base64.b64encode(raw.encode()).decode()

    def _signed(self, url: str) -> str:
        # result and timeout callbacks are guarded by the same token as the STK callback
        return with_query_token(url, self.settings.MPESA_CALLBACK_TOKEN)

    def access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        try:
            response = self.http.get(
                "/oauth/v1/generate",
                params={"grant_type": "client_credentials"},
                auth=(self.settings.MPESA_CONSUMER_KEY, self.settings.MPESA_CONSUMER_SECRET)
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(
                f"M-Pesa OAuth request failed: {str(e)}",
                extra={"error_type": type(e).__name__}
            )
            raise GatewayError("Could not authenticate with M-Pesa")

        token = body.get("access_token")
        if not token:
            raise GatewayError("M-Pesa returned no access token")

        expires_in = int(body.get("expires_in", 3599))
        self._token = token
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        return token

    def _post(self, path: str, payload: dict) -> GatewayResponse:
        headers = {"Authorization": f"Bearer {self.access_token()}"}

        logger.debug(
            "M-Pesa request",
            extra={"path": path, "payload": sanitize_log_data(payload)}
        )

        try:
            response = self.http.post(path, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(
                f"M-Pesa request failed: {str(e)}",
                extra={"path": path, "error_type": type(e).__name__}
            )
            raise GatewayError("Failed to connect to M-Pesa")

        try:
            body = response.json()
        except ValueError:
            logger.error(
                "M-Pesa returned a non-JSON response",
                extra={"path": path, "status_code": response.status_code}
            )
            raise GatewayError("Unexpected response from M-Pesa")

        logger.info(
            "M-Pesa response",
            extra={"path": path, "status_code": response.status_code, "response": body}
        )

        # Daraja reports rejected requests (bad phone, wrong shortcode...) as 4xx with an errorMessage;
        # those are returned so the caller can show the reason. 5xx means the gateway itself failed.
        if response.status_code >= 500:
            raise GatewayError(f"M-Pesa error {response.status_code}")

        return GatewayResponse.model_validate(body)

    def stk_push(self, phone: str, amount: int, account_reference: str, callback_url: str,
                 description: str = "Payment") -> GatewayResponse:
        timestamp = self.timestamp()
        payload = {
            "BusinessShortCode": self.settings.MPESA_SHORTCODE,
            "Password": self.stk_password(timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": amount,
            "PartyA": phone,
            "PartyB": self.settings.MPESA_SHORTCODE,
            "PhoneNumber": phone,
            "CallBackURL": callback_url,
            "AccountReference": account_reference[:12],
            "TransactionDesc": description[:13],
        }
        return self._post("/mpesa/stkpush/v1/processrequest", payload)

    def account_balance(self, remarks: str = "ONLINE CHECK BALANCE") -> GatewayResponse:
        payload = {
            "Initiator": self.settings.MPESA_INITIATOR_NAME,
            "SecurityCredential": self.settings.MPESA_SECURITY_CREDENTIAL,
            "CommandID": "AccountBalance",
            "PartyA": self.settings.MPESA_SHORTCODE,
            "IdentifierType": "4",
            "Remarks": remarks,
            "QueueTimeOutURL": self._signed(self.settings.MPESA_TIMEOUT_URL),
            "ResultURL": self._signed(self.settings.MPESA_BALANCE_RESULT_URL),
        }
        return self._post("/mpesa/accountbalance/v1/query", payload)

    def transaction_status(self, transaction_id: str, remarks: str = "TRANSACTION STATUS") -> GatewayResponse:
        payload = {
            "Initiator": self.settings.MPESA_INITIATOR_NAME,
            "SecurityCredential": self.settings.MPESA_SECURITY_CREDENTIAL,
            "CommandID": "TransactionStatusQuery",
            "TransactionID": transaction_id,
            "PartyA": self.settings.MPESA_SHORTCODE,
            "IdentifierType": "4",
            "ResultURL": self._signed(self.settings.MPESA_STATUS_RESULT_URL),
            "QueueTimeOutURL": self._signed(self.settings.MPESA_TIMEOUT_URL),
            "Remarks": remarks,
            "Occasion": "",
        }
        return self._post("/mpesa/transactionstatus/v1/query", payload)
