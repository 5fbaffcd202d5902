from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", extra="ignore")

    ENV: str = "development"

    DATABASE_URL: str = "sqlite:///./shop.db"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    UPLOAD_DIR: str = "public/uploads"

    # M-Pesa (Daraja)
    MPESA_ENVIRONMENT: str = "sandbox"
    MPESA_BASE_URL: str = "https://sandbox.safaricom.co.ke"
    MPESA_CONSUMER_KEY: str = ""
    MPESA_CONSUMER_SECRET: str = ""
    MPESA_SHORTCODE: str = ""
    MPESA_PASSKEY: str = ""
    MPESA_INITIATOR_NAME: str = ""
    MPESA_SECURITY_CREDENTIAL: str = ""
    MPESA_CALLBACK_URL: str = ""
    MPESA_BALANCE_RESULT_URL: str = ""
    MPESA_STATUS_RESULT_URL: str = ""
    MPESA_TIMEOUT_URL: str = ""
    MPESA_CALLBACK_TOKEN: str = ""
    MPESA_TIMEOUT_SECONDS: float = 30.0
    BALANCE_CACHE_SECONDS: int = 300

    # WhatsApp Business (Meta Graph)
    WHATSAPP_ACCESS_TOKEN: str = ""
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_VERIFY_TOKEN: str = ""
    WHATSAPP_APP_SECRET: str = ""
    WHATSAPP_GRAPH_URL: str = "https://graph.facebook.com/v21.0"

    # Shared secret for the external cron caller of /jobs/trigger
    CRON_TOKEN: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
