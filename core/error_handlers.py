"""
Exception handlers that keep every error response in the API envelope.
"""
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.exceptions import AppError
from middleware.request_id import get_request_id
from utils.logger import get_logger

logger = get_logger(__name__)


def error_response(status_code: int, message: str, data=None, errors=None, headers=None) -> JSONResponse:
    content = {"success": False, "message": message, "data": data}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=headers)


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": exc.status_code,
                "details": exc.payload,
            }
        )
        return error_response(exc.status_code, exc.message, data=exc.payload or None)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg"),
            }
            for err in exc.errors()
        ]
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation failed", errors=errors)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        """
        Last resort: log the full stack trace, return a generic 500 without internals.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__,
                "request_id": get_request_id(request)
            },
            exc_info=True
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
