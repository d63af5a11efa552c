from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bizmanager.infrastructure.persistence.database import Base
from bizmanager.infrastructure.persistence.models.mixins import (IntegerIdMixin,
                                                                 TimestampMixin)


class User(IntegerIdMixin, TimestampMixin, Base):
    """
    Platform user.

    email/phone are ciphertext; lookups go through email_hash, the SHA-256 of
    the normalised email. password is a bcrypt hash.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(Text, nullable=False)
    email_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
