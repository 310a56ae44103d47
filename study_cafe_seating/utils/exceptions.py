"""
Custom exceptions for the study cafe seating engine.
"""

from typing import Any, Dict, Optional, List
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the engine."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Business logic errors
    CENTER_FEATURE_DISABLED = "CENTER_FEATURE_DISABLED"
    SEAT_INACTIVE = "SEAT_INACTIVE"
    SEAT_FIXED = "SEAT_FIXED"
    SEAT_OCCUPIED = "SEAT_OCCUPIED"
    ALREADY_RESERVED = "ALREADY_RESERVED"
    INVALID_RESERVATION_STATE = "INVALID_RESERVATION_STATE"
    OVERLAPPING_ASSIGNMENT = "OVERLAPPING_ASSIGNMENT"
    STUDENT_ALREADY_ASSIGNED = "STUDENT_ALREADY_ASSIGNED"

    # Concurrency errors
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"

    # Infrastructure errors
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class StudyCafeError(Exception):
    """Base exception class for the seating engine."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        retry_after: Optional[int] = None
    ):
        """Initialize the exception with comprehensive error information."""
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []
        self.retry_after = retry_after
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result = {
            "error_code": self.error_code.value,
            "message": self.message,
        }

        if self.details:
            result["details"] = self.details

        if self.suggestions:
            result["suggestions"] = self.suggestions

        if self.retry_after:
            result["retry_after"] = self.retry_after

        return result


class ValidationError(StudyCafeError):
    """Exception raised for validation errors."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            details={"field_errors": field_errors} if field_errors else details,
            **kwargs
        )
        self.field_errors = field_errors or {}


class NotFoundError(StudyCafeError):
    """Base exception for resource not found errors."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": resource_id} if resource_type else None,
            **kwargs
        )


class SeatNotFoundError(NotFoundError):
    """Exception raised when a seat is not found."""

    def __init__(self, seat_id: str, **kwargs):
        super().__init__(
            f"Seat {seat_id} not found",
            resource_type="seat",
            resource_id=seat_id,
            suggestions=["Refresh the seat map"],
            **kwargs
        )


class ReservationNotFoundError(NotFoundError):
    """Exception raised when a reservation is not found."""

    def __init__(self, reservation_id: str, **kwargs):
        super().__init__(
            f"Reservation {reservation_id} not found",
            resource_type="reservation",
            resource_id=reservation_id,
            **kwargs
        )


class AssignmentNotFoundError(NotFoundError):
    """Exception raised when a fixed seat assignment is not found."""

    def __init__(self, assignment_id: str, **kwargs):
        super().__init__(
            f"Fixed seat assignment {assignment_id} not found",
            resource_type="fixed_seat_assignment",
            resource_id=assignment_id,
            **kwargs
        )


class AuthenticationError(StudyCafeError):
    """Exception raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.UNAUTHORIZED,
            suggestions=["Check your credentials", "Login again"],
            **kwargs
        )


class AuthorizationError(StudyCafeError):
    """Exception raised for authorization failures."""

    def __init__(self, message: str = "Access denied", required_permission: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.FORBIDDEN,
            details={"required_permission": required_permission} if required_permission else None,
            **kwargs
        )


class BusinessLogicError(StudyCafeError):
    """Base exception for business rule conflicts."""
    pass


class CenterFeatureDisabledError(BusinessLogicError):
    """Exception raised when the study cafe is not enabled for a center."""

    def __init__(self, center_id: str, **kwargs):
        super().__init__(
            f"Study cafe is not enabled for center {center_id}",
            error_code=ErrorCode.CENTER_FEATURE_DISABLED,
            details={"center_id": center_id},
            suggestions=["Ask the center staff to enable the study cafe"],
            **kwargs
        )


class SeatInactiveError(BusinessLogicError):
    """Exception raised when reserving a deactivated seat."""

    def __init__(self, seat_id: str, **kwargs):
        super().__init__(
            f"Seat {seat_id} is not in service",
            error_code=ErrorCode.SEAT_INACTIVE,
            details={"seat_id": seat_id},
            suggestions=["Choose a different seat"],
            **kwargs
        )


class SeatFixedError(BusinessLogicError):
    """Exception raised when a seat is held by a fixed assignment today."""

    def __init__(self, seat_id: str, **kwargs):
        super().__init__(
            f"Seat {seat_id} is assigned as a fixed seat",
            error_code=ErrorCode.SEAT_FIXED,
            details={"seat_id": seat_id},
            suggestions=["Choose a different seat"],
            **kwargs
        )


class SeatOccupiedError(BusinessLogicError):
    """Exception raised when a seat already has a live reservation."""

    def __init__(self, seat_id: str, **kwargs):
        super().__init__(
            f"Seat {seat_id} is already in use",
            error_code=ErrorCode.SEAT_OCCUPIED,
            details={"seat_id": seat_id},
            suggestions=["Choose a different seat", "Refresh the seat map"],
            **kwargs
        )


class AlreadyReservedError(BusinessLogicError):
    """Exception raised when a student already holds a live reservation."""

    def __init__(self, student_id: str, center_id: str, **kwargs):
        super().__init__(
            f"Student {student_id} already has an active reservation",
            error_code=ErrorCode.ALREADY_RESERVED,
            details={"student_id": student_id, "center_id": center_id},
            suggestions=["Release your current seat first"],
            **kwargs
        )


class InvalidReservationStateError(BusinessLogicError):
    """Exception raised when a reservation is in the wrong state for an operation."""

    def __init__(self, reservation_id: str, current_state: str, **kwargs):
        super().__init__(
            f"Reservation {reservation_id} is {current_state}",
            error_code=ErrorCode.INVALID_RESERVATION_STATE,
            details={"reservation_id": reservation_id, "current_state": current_state},
            suggestions=["Reserve a seat again"],
            **kwargs
        )


class OverlappingAssignmentError(BusinessLogicError):
    """Exception raised when a fixed assignment overlaps another on the same seat."""

    def __init__(self, seat_id: str, conflicting_id: str, **kwargs):
        super().__init__(
            f"Seat {seat_id} already has a fixed assignment in this period",
            error_code=ErrorCode.OVERLAPPING_ASSIGNMENT,
            details={"seat_id": seat_id, "conflicting_assignment_id": conflicting_id},
            suggestions=["Adjust the date range", "Edit the existing assignment"],
            **kwargs
        )


class StudentAlreadyAssignedError(BusinessLogicError):
    """Exception raised when a student already holds a fixed seat in the period."""

    def __init__(self, student_id: str, conflicting_id: str, **kwargs):
        super().__init__(
            f"Student {student_id} already has a fixed seat in this period",
            error_code=ErrorCode.STUDENT_ALREADY_ASSIGNED,
            details={"student_id": student_id, "conflicting_assignment_id": conflicting_id},
            **kwargs
        )


class ConcurrencyError(StudyCafeError):
    """Exception raised for concurrency-related issues."""

    def __init__(self, message: str, retry_after: int = 1, **kwargs):
        super().__init__(
            message,
            error_code=ErrorCode.CONCURRENCY_CONFLICT,
            retry_after=retry_after,
            suggestions=["Please try again", "Wait a moment and retry"],
            **kwargs
        )


class ServiceUnavailableError(StudyCafeError):
    """Exception raised when a backing service (database, redis) fails."""

    def __init__(self, service_name: str, message: str, retry_after: int = 30, **kwargs):
        super().__init__(
            f"{service_name} service error: {message}",
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            details={"service_name": service_name},
            retry_after=retry_after,
            suggestions=["Try again later"],
            **kwargs
        )
