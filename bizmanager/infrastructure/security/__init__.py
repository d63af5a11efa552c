"""Security infrastructure - JWT, password hashing and field encryption."""

from bizmanager.infrastructure.security.field_encryption import FieldEncryptor
from bizmanager.infrastructure.security.jwt import (create_access_token,
                                                   create_user_token,
                                                   get_subject_user_id,
                                                   verify_token)
from bizmanager.infrastructure.security.password import (BcryptPasswordHasher,
                                                        get_password_hash,
                                                        hash_email,
                                                        verify_password)

__all__ = [
    "BcryptPasswordHasher",
    "FieldEncryptor",
    "create_access_token",
    "create_user_token",
    "get_password_hash",
    "get_subject_user_id",
    "hash_email",
    "verify_password",
    "verify_token",
]
