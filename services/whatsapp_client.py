from typing import Optional

import httpx

from core.config import Settings
from core.exceptions import GatewayError
from utils.logger import get_logger

logger = get_logger(__name__)


class WhatsAppClient:
    """Sends template messages through the WhatsApp Business Cloud API."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.Client] = None):
        self.settings = settings
        self.http = http_client or httpx.Client(base_url=settings.WHATSAPP_GRAPH_URL, timeout=15.0)

    def close(self):
        self.http.close()

    def send_template(self, to: str, template: str, parameters: list[str], language: str = "en") -> dict:
        payload = {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": template,
                "language": {"code": language},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": value} for value in parameters],
                    }
                ],
            },
        }

        try:
            response = self.http.post(
                f"/{self.settings.WHATSAPP_PHONE_NUMBER_ID}/messages",
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.WHATSAPP_ACCESS_TOKEN}"}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"WhatsApp send failed: {str(e)}",
                extra={"recipient": to, "template": template, "error_type": type(e).__name__}
            )
            raise GatewayError("Failed to send WhatsApp message")

        logger.info("WhatsApp template sent", extra={"recipient": to, "template": template})
        return response.json()

    def send_dispatch(self, to: str, name: str, order_id: str, destination: str, delivery_date: str) -> dict:
        return self.send_template(to, "dispatch", [name, order_id, destination, delivery_date])
