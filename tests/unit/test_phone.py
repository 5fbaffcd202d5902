import pytest

from utils.phone import normalize_msisdn


@pytest.mark.parametrize("raw", ["0712345678", "+254712345678", "254712345678", "0712 345 678"])
def test_normalize_kenyan_formats(raw):
    assert normalize_msisdn(raw) == "254712345678"


def test_normalize_rejects_garbage():
    with pytest.raises(ValueError):
        normalize_msisdn("not-a-number")


def test_normalize_rejects_short_number():
    with pytest.raises(ValueError):
        normalize_msisdn("07123")
