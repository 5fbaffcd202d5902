import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="shop-tests-")

# Settings are read once and cached, so the environment has to be in place before the app is imported
os.environ["ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_DIR"] = os.path.join(_tmp_dir, "logs")
os.environ["UPLOAD_DIR"] = os.path.join(_tmp_dir, "uploads")
os.environ["MPESA_SHORTCODE"] = "174379"
os.environ["MPESA_PASSKEY"] = "test-passkey"
os.environ["MPESA_CALLBACK_URL"] = "https://shop.example.com/mpesa/callback"
os.environ["MPESA_CALLBACK_TOKEN"] = "callback-token"
os.environ["WHATSAPP_VERIFY_TOKEN"] = "verify-token"
os.environ["WHATSAPP_APP_SECRET"] = "app-secret"
os.environ["WHATSAPP_PHONE_NUMBER_ID"] = "1234567890"
os.environ["CRON_TOKEN"] = "cron-token"

from decimal import Decimal
from typing import Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from main import app
from core.config import get_settings
from core.database import Base
from models.categories import Category
from models.delivery_locations import DeliveryLocation
from models.products import Product
from models.users import User
from schemas.mpesa_schemas import GatewayResponse
from services.token_service import TokenService
from utils.cache import balance_cache
from utils.deps import build_whatsapp_client, get_db, get_mpesa_client, get_whatsapp_client
from utils.hashing import get_password_hash

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

ADMIN_PASSWORD = "AdminPass123"


class FakeMpesaClient:
    """Stands in for Daraja: records requests and answers with a canned acknowledgement."""

    def __init__(self):
        self.calls = []
        self.response = GatewayResponse(
            MerchantRequestID="29115-34620561-1",
            CheckoutRequestID="ws_CO_191220191020363925",
            ResponseCode="0",
            ResponseDescription="Success. Request accepted for processing",
            CustomerMessage="Success. Request accepted for processing",
        )
        self.error = None

    def _answer(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def stk_push(self, **kwargs):
        return self._answer("stk_push", **kwargs)

    def account_balance(self, remarks="ONLINE CHECK BALANCE"):
        return self._answer("account_balance", remarks=remarks)

    def transaction_status(self, transaction_id, remarks="TRANSACTION STATUS"):
        return self._answer("transaction_status", transaction_id=transaction_id, remarks=remarks)

    def close(self):
        pass


class FakeWhatsAppClient:

    def __init__(self):
        self.sent = []
        self.error = None

    def send_dispatch(self, to, name, order_id, destination, delivery_date):
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "name": name, "order_id": order_id,
                          "destination": destination, "delivery_date": delivery_date})
        return {"messages": [{"id": "wamid.TEST"}]}

    def close(self):
        pass


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)
    balance_cache.clear()


@pytest.fixture
def session_factory(session):
    return TestingSessionLocal


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def fake_mpesa():
    return FakeMpesaClient()


@pytest.fixture
def fake_whatsapp():
    return FakeWhatsAppClient()


@pytest.fixture
async def client(session: Session, fake_mpesa, fake_whatsapp):
    """
    Yields an HTTP client bound to the app, the test database and the fake gateways.
    """
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mpesa_client] = lambda: fake_mpesa
    app.dependency_overrides[get_whatsapp_client] = lambda: fake_whatsapp
    app.dependency_overrides[build_whatsapp_client] = lambda: fake_whatsapp

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(session):
    user = User(
        email="admin@example.com",
        full_name="Shop Admin",
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role="admin",
        is_active=True,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin_password():
    return ADMIN_PASSWORD


@pytest.fixture
def admin_headers(admin_user, settings):
    token = TokenService.create_access_token(settings, admin_user.email, admin_user.id, admin_user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def category(session):
    category = Category(name="Sneakers")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture
def make_product(session, category):
    def _make(name="Air Max", price="10.00", stock=10, **fields):
        product = Product(
            category_id=fields.pop("category_id", category.id),
            name=name,
            price=Decimal(price),
            stock=stock,
            sku=fields.pop("sku", f"SKU-{name.upper().replace(' ', '')[:8]}"),
            slug=fields.pop("slug", name.lower().replace(" ", "-")),
            colors=fields.pop("colors", ["Black"]),
            sizes=fields.pop("sizes", ["42"]),
            **fields
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
    return _make


@pytest.fixture
def location(session):
    location = DeliveryLocation(town="Nairobi", delivery_fee=Decimal("300"), is_active=True)
    session.add(location)
    session.commit()
    session.refresh(location)
    return location


@pytest.fixture
def stk_callback_payload():
    def _build(checkout_request_id="ws_CO_191220191020363925", result_code=0, receipt="ABC123",
               amount=325):
        callback = {
            "MerchantRequestID": "29115-34620561-1",
            "CheckoutRequestID": checkout_request_id,
            "ResultCode": result_code,
            "ResultDesc": "The service request is processed successfully." if result_code == 0
            else "Request cancelled by user",
        }
        if result_code == 0:
            callback["CallbackMetadata"] = {
                "Item": [
                    {"Name": "Amount", "Value": amount},
                    {"Name": "MpesaReceiptNumber", "Value": receipt},
                    {"Name": "TransactionDate", "Value": 20191219102115},
                    {"Name": "PhoneNumber", "Value": 254708374149},
                ]
            }
        return {"Body": {"stkCallback": callback}}
    return _build
