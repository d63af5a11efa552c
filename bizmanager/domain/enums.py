"""Domain enumerations for the BizManager authorization core."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure taxonomy shared by the validator, services and HTTP layer"""

    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    INTERNAL = "internal"


class ReservedRole(str, Enum):
    """Role names with system-defined meaning"""

    ROOT = "ROOT"
    ADMIN = "ADMIN"
