# backend/carenow/core/exceptions.py
"""
Domain-specific exceptions for the CareNow booking core.

Services raise these; the client flows catch them at their boundary and
turn them into error states carrying ``message`` and ``code``.
"""

from typing import Any, Dict, List, Optional


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class ValidationException(DomainException):
    """Raised when business validation fails."""


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = "NOT_FOUND",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""


class AuthenticationException(DomainException):
    """Raised when the auth provider rejects an operation."""


class ServiceException(DomainException):
    """Raised when a service operation fails."""


# Specific business exceptions


class IncompleteBookingException(ValidationException):
    """Raised when a booking request is missing required selections."""

    def __init__(self, missing_fields: List[str]):
        super().__init__(
            message="Booking information is incomplete",
            code="BOOKING_INCOMPLETE",
            details={"missing_fields": missing_fields},
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when a booking status change is not allowed from its current status."""

    def __init__(self, booking_id: str, current_status: str, target_status: str):
        super().__init__(
            message=f"Cannot move booking from {current_status} to {target_status}",
            code="INVALID_STATUS_TRANSITION",
            details={
                "booking_id": booking_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class CancellationWindowException(BusinessRuleException):
    """Raised when a booking is cancelled too close to its start."""

    def __init__(self, required_hours: int, hours_until_start: float):
        super().__init__(
            message=(
                f"Bookings can only be cancelled more than {required_hours} hours before they start"
            ),
            code="CANCELLATION_WINDOW_CLOSED",
            details={
                "required_hours": required_hours,
                "hours_until_start": round(hours_until_start, 2),
            },
        )


class ReviewEditWindowException(BusinessRuleException):
    """Raised when a review is edited after its edit window closed."""

    def __init__(self, window_hours: int):
        super().__init__(
            message=f"Reviews can only be edited within {window_hours} hours of posting",
            code="REVIEW_EDIT_WINDOW_CLOSED",
            details={"window_hours": window_hours},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
