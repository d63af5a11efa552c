from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bizmanager.infrastructure.persistence.database import Base
from bizmanager.infrastructure.persistence.models.mixins import (
    BigIntId, CompanyScopedMixin, IntegerIdMixin, TimestampMixin)


class Company(IntegerIdMixin, TimestampMixin, Base):
    """
    Tenant root.

    email, phone and address hold ciphertext produced by the field encryptor;
    plaintext never reaches this table.
    """

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    identifier: Mapped[str | None] = mapped_column(
        String(100), nullable=True, unique=True
    )  # tenant slug
    logo: Mapped[str | None] = mapped_column(String(500), nullable=True)


class CompanyUser(IntegerIdMixin, CompanyScopedMixin, TimestampMixin, Base):
    """Membership of a user in a company; is_main marks the owner."""

    __tablename__ = "company_users"

    user_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("users.id"), nullable=False, index=True
    )
    is_main: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_users_company_user"),
    )
