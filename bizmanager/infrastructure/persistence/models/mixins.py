"""
SQLAlchemy mixins for common model patterns.

These mixins provide reusable column definitions so every table agrees on
identifier type, company scoping and timestamps.

    - IntegerIdMixin: 64-bit auto-increment primary key
    - CompanyScopedMixin: required company_id foreign key
    - OptionalCompanyMixin: nullable company_id (NULL = global row)
    - TimestampMixin: created_at / updated_at
"""
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

# SQLite only auto-increments an INTEGER PRIMARY KEY
BigIntId = BigInteger().with_variant(Integer, "sqlite")


class IntegerIdMixin:
    """
    Mixin for models keyed by an auto-increment integer.

    Usage:
        class MyModel(IntegerIdMixin, Base):
            __tablename__ = "my_models"
    """

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(BigIntId, primary_key=True, autoincrement=True)


class CompanyScopedMixin:
    """
    Mixin for rows that always belong to one company.

    No ON DELETE cascade: company deletion removes dependants explicitly and
    in order, so a stray row makes the delete fail instead of vanishing.
    """

    @declared_attr
    def company_id(cls) -> Mapped[int]:
        return mapped_column(
            BigIntId,
            ForeignKey("companies.id"),
            nullable=False,
            index=True,
        )


class OptionalCompanyMixin:
    """Mixin for rows that are either company scoped or global (company_id NULL)."""

    @declared_attr
    def company_id(cls) -> Mapped[int | None]:
        return mapped_column(
            BigIntId,
            ForeignKey("companies.id"),
            nullable=True,
            index=True,
        )


class TimestampMixin:
    """
    Mixin for timestamp tracking.

    Provides:
        - created_at: Timestamp set on creation (server-side default)
        - updated_at: Timestamp updated on modification (server-side default + onupdate)
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
