"""
Domain exceptions for the BizManager authorization core.

Every exception carries an ErrorKind so callers can translate a failure into
a transport status without inspecting concrete types. Messages are plain
English and never include decrypted contact data.
"""

from typing import Any

from bizmanager.domain.enums import ErrorKind


class BizManagerException(Exception):
    """
    Base exception for all BizManager errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
        kind: Failure category used for status mapping
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class AuthenticationException(BizManagerException):
    """Raised when the caller identity cannot be resolved."""

    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, "AUTHENTICATION_ERROR")


class PermissionDeniedError(BizManagerException):
    """Caller is authenticated but not allowed to perform the operation."""

    kind = ErrorKind.FORBIDDEN

    def __init__(
        self,
        message: str = "Permission denied",
        resource: str | None = None,
        action: str | None = None,
    ):
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(BizManagerException):
    """Raised when a requested resource is not found."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, resource_type: str, resource_id: int | str):
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ConflictException(BizManagerException):
    """Raised on duplicate assignments or unique-key violations."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, resource_type: str | None = None):
        details = {"resource_type": resource_type} if resource_type else {}
        super().__init__(message, "CONFLICT", details)


class ValidationException(BizManagerException):
    """Raised when input validation fails."""

    kind = ErrorKind.INVALID

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class InternalException(BizManagerException):
    """Unexpected store failure."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "Internal error"):
        super().__init__(message, "INTERNAL_ERROR")
