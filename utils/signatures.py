import hashlib
import hmac
from typing import Optional


def tokens_match(expected: str, provided: Optional[str]) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(expected.encode(), provided.encode())


def hub_signature(secret: str, body: bytes) -> str:
    """Value Meta puts in X-Hub-Signature-256 for a webhook body."""
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_hub_signature(secret: str, body: bytes, header: Optional[str]) -> bool:
    if not header:
        return False
    return hmac.compare_digest(hub_signature(secret, body), header)
