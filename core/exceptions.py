"""
Application exceptions.

Services raise these; the handlers in core.error_handlers turn them into the
standard {success, message, data} envelope with the matching status code.
"""
from __future__ import annotations


class AppError(Exception):
    """Base class for all application errors, never raised directly."""
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **payload):
        self.message = message or self.message
        super().__init__(self.message)
        self.payload = payload


class NotFoundError(AppError):
    status_code = 404
    message = "The requested resource was not found"


class ConflictError(AppError):
    status_code = 409
    message = "The request conflicts with the current state of the resource"


class InsufficientStockError(ConflictError):
    message = "Insufficient stock"


class ValidationFailedError(AppError):
    status_code = 422
    message = "Invalid input"


class AuthenticationError(AppError):
    status_code = 401
    message = "Could not validate credentials."


class PermissionDeniedError(AppError):
    status_code = 403
    message = "You do not have permission to perform this action"


class WebhookAuthError(AppError):
    status_code = 403
    message = "Webhook authentication failed"


class GatewayError(AppError):
    status_code = 502
    message = "Payment gateway request failed"


class ParseError(AppError):
    """A gateway or webhook payload is missing required fields."""
    status_code = 400
    message = "Malformed payload"
