"""JWT token handling for authentication."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from bizmanager.infrastructure.config.settings import get_settings

settings = get_settings()


def create_access_token(
    data: dict[str, Any], expires_delta: timedelta | None = None
) -> str:
    """Create JWT access token; 'sub' carries the user id"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.secret_key, algorithm=settings.algorithm
    )
    assert isinstance(encoded_jwt, str)
    return encoded_jwt


def create_user_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    return create_access_token({"sub": str(user_id)}, expires_delta)


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode JWT token, returns payload"""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if not isinstance(payload, dict):
            raise TypeError("Token payload must be a dictionary")
        return payload
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}") from e


def get_subject_user_id(payload: dict[str, Any]) -> int:
    """Extract the integer user id from the 'sub' claim"""
    subject = payload.get("sub")
    if subject is None:
        raise ValueError("Invalid token: missing subject")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise ValueError("Invalid token: subject is not a user id") from e
