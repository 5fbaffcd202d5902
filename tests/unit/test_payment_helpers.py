from decimal import Decimal

from services.mpesa_client import with_query_token
from services.payment_service import gateway_amount


def test_gateway_amount_rounds_up():
    assert gateway_amount(Decimal("325.00")) == 325
    assert gateway_amount(Decimal("325.01")) == 326
    assert gateway_amount(Decimal("0.40")) == 1


def test_with_query_token():
    assert with_query_token("https://shop.example.com/mpesa/callback", "abc") == \
        "https://shop.example.com/mpesa/callback?token=abc"
    assert with_query_token("https://shop.example.com/cb?x=1", "abc") == "https://shop.example.com/cb?x=1&token=abc"
    assert with_query_token("https://shop.example.com/cb", "") == "https://shop.example.com/cb"
