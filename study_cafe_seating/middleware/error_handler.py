"""
Error handling middleware mapping ledger errors to HTTP responses.
"""

import logging
import traceback
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as SQLTimeoutError
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.exceptions import (
    ConcurrencyError,
    ErrorCode,
    NotFoundError,
    ServiceUnavailableError,
    StudyCafeError,
    ValidationError,
)

logger = logging.getLogger(__name__)


STATUS_BY_ERROR_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.CENTER_FEATURE_DISABLED: status.HTTP_403_FORBIDDEN,
    ErrorCode.SEAT_INACTIVE: status.HTTP_409_CONFLICT,
    ErrorCode.SEAT_FIXED: status.HTTP_409_CONFLICT,
    ErrorCode.SEAT_OCCUPIED: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_RESERVED: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_RESERVATION_STATE: status.HTTP_409_CONFLICT,
    ErrorCode.OVERLAPPING_ASSIGNMENT: status.HTTP_409_CONFLICT,
    ErrorCode.STUDENT_ALREADY_ASSIGNED: status.HTTP_409_CONFLICT,
    ErrorCode.CONCURRENCY_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for_error(exc: StudyCafeError) -> int:
    """Map error codes to HTTP status codes."""
    return STATUS_BY_ERROR_CODE.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_response(exc: StudyCafeError, error_id: str) -> JSONResponse:
    """Render a ledger error as the standard error body."""
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)

    return JSONResponse(
        status_code=status_code_for_error(exc),
        content={
            "error": exc.to_dict(),
            "error_id": error_id,
            "timestamp": _timestamp()
        },
        headers=headers
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware turning uncaught exceptions into structured error responses."""

    def __init__(self, app, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        """Process request and handle any exceptions."""
        error_id = str(uuid4())

        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc, error_id)

    def _handle_exception(self, request: Request, exc: Exception, error_id: str) -> JSONResponse:
        self._log_error(request, exc, error_id)

        if isinstance(exc, StudyCafeError):
            return error_response(exc, error_id)
        if isinstance(exc, PydanticValidationError):
            return self._handle_validation_error(exc, error_id)
        if isinstance(exc, IntegrityError):
            return error_response(
                ValidationError(
                    "Data integrity constraint violation",
                    details={"constraint_type": "integrity"}
                ),
                error_id,
            )
        if isinstance(exc, (OperationalError, SQLTimeoutError)):
            return error_response(
                ServiceUnavailableError("database", "Database temporarily unavailable"),
                error_id,
            )
        return self._handle_unexpected_error(exc, error_id)

    def _handle_validation_error(self, exc: PydanticValidationError, error_id: str) -> JSONResponse:
        """Handle Pydantic validation errors raised outside request parsing."""
        field_errors = {}
        for error in exc.errors():
            field_path = ".".join(str(loc) for loc in error["loc"])
            field_errors.setdefault(field_path, []).append(error["msg"])

        return error_response(
            ValidationError("Request validation failed", field_errors=field_errors),
            error_id,
        )

    def _handle_unexpected_error(self, exc: Exception, error_id: str) -> JSONResponse:
        unexpected = StudyCafeError(
            "An unexpected error occurred",
            error_code=ErrorCode.INTERNAL_ERROR,
            details={"error_type": type(exc).__name__} if self.debug else None
        )

        response_data = {
            "error": unexpected.to_dict(),
            "error_id": error_id,
            "timestamp": _timestamp()
        }
        if self.debug:
            response_data["debug"] = {
                "exception": str(exc),
                "traceback": traceback.format_exc()
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=response_data
        )

    def _log_error(self, request: Request, exc: Exception, error_id: str) -> None:
        context = {
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }

        if isinstance(exc, StudyCafeError):
            context["error_code"] = exc.error_code.value
            context["details"] = exc.details
            if isinstance(exc, (ConcurrencyError, ServiceUnavailableError)):
                logger.error(f"System error [{error_id}]: {exc.message}", extra=context)
            elif isinstance(exc, NotFoundError):
                logger.info(f"Not found [{error_id}]: {exc.message}", extra=context)
            else:
                logger.warning(f"Rejected [{error_id}]: {exc.message}", extra=context)
        else:
            logger.error(
                f"Unexpected error [{error_id}]: {exc}",
                extra={**context, "error_type": type(exc).__name__},
                exc_info=True,
            )
