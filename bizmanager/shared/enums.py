"""
Shared enumerations for the BizManager authorization service.

Note: ErrorKind lives in bizmanager/domain/enums.py as it's a domain concept.
"""

from enum import Enum


class ActorType(str, Enum):
    """Who is acting on the store"""

    USER = "user"
    SYSTEM = "system"
