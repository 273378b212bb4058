# app/core/errors.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    Base class for errors surfaced to API clients as `{"error": message}`.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateNameError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UnsupportedMediaTypeError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLargeError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class StoreUnavailableError(AppError):
    """Backing store (DB or blob store) unreachable or failed."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreNotReadyError(AppError):
    """Blob store requested before application startup finished."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StoreTimeoutError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def add_exception_handlers(app: FastAPI) -> None:
    """
    Register handlers that render every known error as `{"error": message}`.
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": _format_validation_errors(exc)},
        )
