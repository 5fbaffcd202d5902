import hashlib
import hmac

from utils.signatures import hub_signature, tokens_match, verify_hub_signature


def test_hub_signature_matches_hmac_sha256():
    body = b'{"entry": []}'
    expected = "sha256=" + hmac.new(b"app-secret", body, hashlib.sha256).hexdigest()

    assert hub_signature("app-secret", body) == expected


def test_verify_hub_signature():
    body = b'{"object": "whatsapp_business_account"}'
    header = hub_signature("app-secret", body)

    assert verify_hub_signature("app-secret", body, header) is True
    assert verify_hub_signature("app-secret", body + b" ", header) is False
    assert verify_hub_signature("other-secret", body, header) is False
    assert verify_hub_signature("app-secret", body, None) is False


def test_tokens_match():
    assert tokens_match("callback-token", "callback-token") is True
    assert tokens_match("callback-token", "callback-tokem") is False
    assert tokens_match("callback-token", None) is False
    assert tokens_match("callback-token", "") is False
