"""
Logging helpers.
"""

import logging
from typing import Any, Dict


SENSITIVE_FIELDS = {
    'password', 'token', 'secret', 'passkey', 'credential',
    'authorization', 'access_token', 'consumer_key'
}


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy of `data` with secrets redacted, safe to pass as log `extra`.

    Gateway payloads and outbound request bodies go through here before they
    are logged: Daraja requests carry the STK password and the initiator
    security credential, Graph requests carry bearer tokens.
    """
    if not isinstance(data, dict):
        return data

    sanitized = data.copy()

    for key, value in sanitized.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_FIELDS):
            if isinstance(value, str):
                # Keep a token prefix so two requests can still be told apart
                if 'token' in key.lower() and len(value) > 8:
                    sanitized[key] = f"{value[:8]}..."
                else:
                    sanitized[key] = "***REDACTED***"

        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

        elif isinstance(value, list):
            sanitized[key] = [sanitize_log_data(v) if isinstance(v, dict) else v for v in value]

    return sanitized
