# backend/lesson_scheduling/core/exceptions.py
"""
Domain-specific exceptions for the lesson scheduling core.

These exceptions provide clear, business-focused error messages
that callers can catch and translate for their own transport.

Scheduling conflicts found by the conflict checker are data, not
exceptions. Only the committing booking path raises
BookingConflictException.
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
    """Raised when input validation fails."""


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""


class ServiceException(DomainException):
    """Raised when a service operation fails."""


# Specific business exceptions


class InvalidTimeFormatException(ValidationException):
    """Raised when a wall-clock time string cannot be parsed."""

    def __init__(self, value: Any):
        super().__init__(
            message=f"Invalid time format: {value!r} (expected HH:MM or HH:MM:SS)",
            code="INVALID_TIME_FORMAT",
            details={"value": str(value)},
        )


class BookingConflictException(ConflictException):
    """Raised when a lesson cannot be committed because of scheduling conflicts."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        conflicts: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(
            message=message or "This time slot conflicts with an existing commitment",
            code="BOOKING_CONFLICT",
            details={"conflicts": conflicts or []},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations. The core never retries them.
    """
