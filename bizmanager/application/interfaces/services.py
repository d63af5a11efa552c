"""
Service interfaces (ports) for the application layer.

The authorization core consumes encryption and password hashing through
these protocols only; the concrete Fernet and bcrypt adapters live in
bizmanager.infrastructure.security.
"""

from typing import Protocol


class IFieldCipher(Protocol):
    """Reversible encryption of sensitive contact fields"""

    def encrypt(self, value: str) -> str:
        """Return ciphertext for a plaintext value"""
        ...

    def decrypt(self, ciphertext: str) -> str:
        """Return the plaintext for a ciphertext produced by encrypt()"""
        ...


class IPasswordHasher(Protocol):
    """One-way password hashing"""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, hashed: str) -> bool:
        ...
