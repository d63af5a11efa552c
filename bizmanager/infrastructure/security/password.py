"""Password and email hashing."""

import hashlib

import bcrypt


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        result = bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
        assert isinstance(result, bool)
        return result
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    result = hashed.decode("utf-8")
    assert isinstance(result, str)
    return result


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_email(email: str) -> str:
    """SHA-256 of the normalised email, used for lookups on encrypted rows"""
    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()


class BcryptPasswordHasher:
    """IPasswordHasher backed by bcrypt"""

    def hash(self, password: str) -> str:
        return get_password_hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        return verify_password(password, hashed)
