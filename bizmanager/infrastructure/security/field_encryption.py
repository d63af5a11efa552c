"""Symmetric encryption of sensitive company and user fields"""

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from bizmanager.infrastructure.config.settings import get_settings
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

PBKDF2_ITERATIONS = 100000


class FieldEncryptor:
    """
    Fernet encryption for contact fields (email, phone, address).

    The Fernet key is derived with PBKDF2 from ENCRYPTION_KEY and
    ENCRYPTION_SALT, so neither is ever stored alongside the data. Fernet
    tokens are authenticated, so tampered ciphertext fails to decrypt.
    """

    def __init__(self, encryption_key: str | None = None, encryption_salt: str | None = None):
        if encryption_key is None or encryption_salt is None:
            settings = get_settings()
            encryption_key = encryption_key or settings.encryption_key
            encryption_salt = encryption_salt or settings.encryption_salt
        self._fernet = Fernet(self._derive_key(encryption_key, encryption_salt))

    @staticmethod
    def _derive_key(encryption_key: str, encryption_salt: str) -> bytes:
        key = hashlib.pbkdf2_hmac(
            "sha256",
            encryption_key.encode(),
            encryption_salt.encode(),
            PBKDF2_ITERATIONS,
        )
        return base64.urlsafe_b64encode(key)

    def encrypt(self, value: str) -> str:
        return self._fernet.encrypt(value.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a value produced by encrypt().

        Raises:
            ValueError: If the token is malformed, tampered with, or was
                encrypted under a different key
        """
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken as e:
            # Never log the ciphertext or any plaintext
            logger.error("Field decryption failed")
            raise ValueError("Decryption failed: invalid token") from e

    def encrypt_optional(self, value: str | None) -> str | None:
        return self.encrypt(value) if value is not None else None

    def decrypt_optional(self, ciphertext: str | None) -> str | None:
        return self.decrypt(ciphertext) if ciphertext is not None else None
