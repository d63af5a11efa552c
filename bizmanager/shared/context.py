"""
Request context management using contextvars.

Provides async-safe storage for request-scoped data like the acting user
and the correlation id used in log lines.

Usage:
    # In a dependency after the bearer token is verified:
    set_current_actor(actor_id=42)

    # Anywhere further down the call chain:
    actor_id = get_current_actor_id()  # 42, or None outside a request

    # Context is automatically isolated per request due to contextvars
"""

from contextvars import ContextVar
from dataclasses import dataclass

from bizmanager.shared.enums import ActorType

_current_actor_id: ContextVar[int | None] = ContextVar("current_actor_id", default=None)
_current_actor_type: ContextVar[ActorType] = ContextVar(
    "current_actor_type", default=ActorType.SYSTEM
)
_current_ip_address: ContextVar[str | None] = ContextVar("current_ip_address", default=None)
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


@dataclass(frozen=True)
class ActorContext:
    """Immutable snapshot of the current actor context."""

    actor_id: int | None
    actor_type: ActorType
    ip_address: str | None = None


def set_current_actor(
    actor_id: int | None,
    actor_type: ActorType = ActorType.USER,
    ip_address: str | None = None,
) -> None:
    """
    Set the current actor for this request.

    Call this from the authentication dependency once the token is verified.
    """
    _current_actor_id.set(actor_id)
    _current_actor_type.set(actor_type)
    _current_ip_address.set(ip_address)


def clear_current_actor() -> None:
    """Clear the current actor context."""
    _current_actor_id.set(None)
    _current_actor_type.set(ActorType.SYSTEM)
    _current_ip_address.set(None)


def get_current_actor_id() -> int | None:
    """Get the current actor id, or None if not authenticated."""
    return _current_actor_id.get()


def get_actor_context() -> ActorContext:
    """Get a snapshot of the current actor context."""
    return ActorContext(
        actor_id=_current_actor_id.get(),
        actor_type=_current_actor_type.get(),
        ip_address=_current_ip_address.get(),
    )


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str:
    """Get the correlation ID for the current request"""
    return _correlation_id.get()
