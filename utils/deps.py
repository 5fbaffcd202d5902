from core.database import SessionLocal
from typing import Annotated, Optional
from fastapi import Depends, Header, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from core.config import Settings, get_settings
from core.exceptions import AuthenticationError, PermissionDeniedError, WebhookAuthError
from services.auth_service import AuthService
from services.image_service import ImageService
from services.mpesa_client import MpesaClient
from services.payment_service import PaymentService
from services.token_service import TokenService
from services.whatsapp_client import WhatsAppClient
from services.catalog_service import ProductService
from utils.cache import balance_cache
from utils.signatures import tokens_match


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


db_dependency = Annotated[Session, Depends(get_db)]
settings_dependency = Annotated[Settings, Depends(get_settings)]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def get_current_admin(db: db_dependency, settings: settings_dependency,
                      token: Annotated[Optional[str], Depends(oauth2_scheme)]):
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = TokenService.decode_access_token(settings, token)
    user = AuthService.get_active_user_by_id(db, payload.get("id"))
    if not user:
        raise AuthenticationError()

    if user.role != "admin":
        raise PermissionDeniedError()

    return {"email": user.email, "user_id": user.id, "user_role": user.role}


admin_dependency = Annotated[dict, Depends(get_current_admin)]


def get_mpesa_client(settings: settings_dependency):
    client = MpesaClient(settings)
    try:
        yield client
    finally:
        client.close()


def build_whatsapp_client(settings: settings_dependency) -> WhatsAppClient:
    return WhatsAppClient(settings)


def get_whatsapp_client(client: Annotated[WhatsAppClient, Depends(build_whatsapp_client)]):
    try:
        yield client
    finally:
        client.close()


whatsapp_dependency = Annotated[WhatsAppClient, Depends(get_whatsapp_client)]
# Left open for a background task, which closes it when done
unmanaged_whatsapp_dependency = Annotated[WhatsAppClient, Depends(build_whatsapp_client)]


def get_payment_service(db: db_dependency, settings: settings_dependency,
                        client: Annotated[MpesaClient, Depends(get_mpesa_client)]):
    return PaymentService(db, settings, client=client, cache=balance_cache)


payment_dependency = Annotated[PaymentService, Depends(get_payment_service)]


def get_product_service(db: db_dependency, settings: settings_dependency):
    return ProductService(db, ImageService(settings.UPLOAD_DIR))


product_dependency = Annotated[ProductService, Depends(get_product_service)]


def verify_mpesa_callback(request: Request, settings: settings_dependency):
    """
    Daraja does not sign callbacks, so the callback URL we register carries a
    secret token; a request without it did not come from our STK push.
    """
    if not settings.MPESA_CALLBACK_TOKEN:
        return
    if not tokens_match(settings.MPESA_CALLBACK_TOKEN, request.query_params.get("token")):
        raise WebhookAuthError("Invalid callback token")


def verify_cron_or_admin(db: db_dependency, settings: settings_dependency,
                         token: Annotated[Optional[str], Depends(oauth2_scheme)],
                         x_cron_token: Annotated[Optional[str], Header()] = None):
    if settings.CRON_TOKEN and tokens_match(settings.CRON_TOKEN, x_cron_token):
        return {"user_role": "cron"}
    return get_current_admin(db, settings, token)
