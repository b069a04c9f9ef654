"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
Every business rule violation raised by the status engine or the trip
lifecycle is an AppException subclass and is rendered as a rejected request.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("fleetops.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when a referenced entity is missing or soft-deleted."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InvalidStateError(AppException):
    """Raised when a vehicle or driver is not in the status a transition requires."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_STATE_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class LicenseExpiredError(AppException):
    """Raised when dispatching a driver whose license has expired."""

    def __init__(self, driver_id: Any = None):
        super().__init__(
            message="Driver license is expired. Cannot be assigned.",
            error_code="ERR_DRIVER_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"driver_id": driver_id}
        )


class CapacityExceededError(AppException):
    """Raised when cargo weight is above the vehicle's max capacity."""

    def __init__(self, cargo_weight: float, max_capacity: float):
        super().__init__(
            message=f"Cargo weight ({cargo_weight}kg) exceeds vehicle max capacity ({max_capacity}kg)",
            error_code="ERR_TRIP_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"cargo_weight": cargo_weight, "max_capacity": max_capacity}
        )


class CertificationMismatchError(AppException):
    """Raised when a driver is not certified for the vehicle's type."""

    def __init__(self, driver_name: str, vehicle_type: str, allowed_types: list):
        super().__init__(
            message=(
                f"Driver {driver_name} is not certified to drive {vehicle_type} vehicles. "
                f"Allowed types: {', '.join(allowed_types)}"
            ),
            error_code="ERR_TRIP_002",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"vehicle_type": vehicle_type, "allowed_vehicle_type": allowed_types}
        )


class MissingFieldError(AppException):
    """Raised when a transition needs a field the request did not supply."""

    def __init__(self, field: str, message: str = None):
        super().__init__(
            message=message or f"{field} is required",
            error_code="ERR_TRIP_003",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": field}
        )


class InvalidOdometerError(AppException):
    """Raised when an end odometer reading is behind the start reading."""

    def __init__(self, start_odometer: int, end_odometer: int):
        super().__init__(
            message="End odometer cannot be less than start odometer",
            error_code="ERR_TRIP_004",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"start_odometer": start_odometer, "end_odometer": end_odometer}
        )


class FieldValidationError(AppException):
    """Generic field-level validation failure."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    logger.info(
        "Rejected request",
        extra={"path": request.url.path, "error_code": exc.error_code, "detail": exc.message}
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold the raw exception object, which is not JSON serializable
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
