from __future__ import annotations

from typing import Mapping, Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"


class ValidationError(DomainError):
    """Raised when input data is malformed, missing or out of range.

    ``field_errors`` maps every offending field to its messages so callers can
    report all problems in one response.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", field_errors: Optional[Mapping[str, Sequence[str]]] = None):
        super().__init__(message)
        self.field_errors: dict[str, list[str]] = {k: list(v) for k, v in (field_errors or {}).items()}


class BadRequestError(DomainError):
    """Raised when an action is not allowed in the aggregate's current state."""

    code = "BAD_REQUEST"


class ConflictError(DomainError):
    """Raised on duplicate punches, duplicate periods or lost-update races."""

    code = "CONFLICT"


class NotFoundError(DomainError):
    code = "NOT_FOUND"


class AuthenticationError(DomainError):
    """Raised when no verified identity is available."""

    code = "UNAUTHORIZED"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "FORBIDDEN"
