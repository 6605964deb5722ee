"""Centralized error handling for the dashboard API."""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coinboard.utils.logger import StructuredLogger

logger = StructuredLogger.from_config("ErrorHandlers")


class DashboardError:
    """Standard error codes returned by the API."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ORDER = "INVALID_ORDER"
    INVALID_TIMEFRAME = "INVALID_TIMEFRAME"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse:
    """Standardized error response format."""

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | list[str] | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        """
        Initialize error response.

        Args:
            error_code: Code from DashboardError
            message: Human-readable error message
            details: Additional error details, e.g. per-field messages
            status_code: HTTP status code
        """
        self.error_code = error_code
        self.message = message
        self.details = details
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        response = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response

    def to_http_exception(self) -> HTTPException:
        """Convert to FastAPI HTTPException."""
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


def create_validation_error_response(errors: list[dict[str, Any]]) -> ErrorResponse:
    """
    Build a validation error from Pydantic error entries.

    Args:
        errors: Error entries as returned by ``exc.errors()``

    Returns:
        ErrorResponse keyed by dotted field path
    """
    field_errors = {}
    for error in errors:
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    return ErrorResponse(
        error_code=DashboardError.VALIDATION_ERROR,
        message="Validation failed for one or more fields",
        details=field_errors,
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def create_invalid_choice_error(field: str, value: Any, allowed: list[str]) -> ErrorResponse:
    """Error for an order or timeframe outside the supported values."""
    error_code = (
        DashboardError.INVALID_ORDER if field == "order" else DashboardError.INVALID_TIMEFRAME
    )
    return ErrorResponse(
        error_code=error_code,
        message=f"Unsupported {field}: {value}",
        details={field: f"Must be one of: {', '.join(allowed)}"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


def create_internal_error(message: str = "An unexpected error occurred") -> ErrorResponse:
    """Internal server error with a generic message."""
    return ErrorResponse(
        error_code=DashboardError.INTERNAL_ERROR,
        message=message,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation errors in the standard envelope."""
    error_response = create_validation_error_response(exc.errors())
    return JSONResponse(
        status_code=error_response.status_code,
        content=error_response.to_dict(),
    )


def handle_service_error(error: Exception, context: str = "operation") -> ErrorResponse:
    """
    Convert a service layer exception raised inside a route.

    Args:
        error: Exception from the service layer
        context: Operation that failed, used in the message

    Returns:
        ErrorResponse with a generic 500, the error itself is only logged
    """
    logger.error(
        "Service error in route",
        context={"operation": context},
        exception=error,
    )
    return create_internal_error(f"Could not complete {context}")
