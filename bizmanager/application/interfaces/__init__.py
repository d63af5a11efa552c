"""
Application layer interfaces (ports).

These protocols define the contracts between the application layer
and the infrastructure layer, following the Dependency Inversion Principle.
"""

from bizmanager.application.interfaces.services import IFieldCipher, IPasswordHasher

__all__ = [
    "IFieldCipher",
    "IPasswordHasher",
]
