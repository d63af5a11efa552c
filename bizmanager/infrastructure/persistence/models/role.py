from sqlalchemy import (CheckConstraint, ForeignKey, Index, String, Text,
                        UniqueConstraint, text)
from sqlalchemy.orm import Mapped, mapped_column

from bizmanager.domain.enums import ReservedRole
from bizmanager.infrastructure.persistence.database import Base
from bizmanager.infrastructure.persistence.models.mixins import (
    BigIntId, IntegerIdMixin, OptionalCompanyMixin, TimestampMixin)


class Role(IntegerIdMixin, OptionalCompanyMixin, TimestampMixin, Base):
    """
    Named bundle of permissions.

    Company scoped, except for the single global ROOT role which has no
    company and whose grants count in every company.
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_roles_company_name"),
        CheckConstraint(
            "company_id IS NOT NULL OR name = 'ROOT'", name="ck_roles_company_or_root"
        ),
        # NULL company ids never collide in the unique constraint above
        Index(
            "uq_roles_global_root",
            "name",
            unique=True,
            sqlite_where=text("company_id IS NULL"),
            postgresql_where=text("company_id IS NULL"),
        ),
    )

    @property
    def is_root(self) -> bool:
        return self.company_id is None and self.name == ReservedRole.ROOT.value


class UserRole(IntegerIdMixin, TimestampMixin, Base):
    """
    Grant of a role to a user.

    company_user_id ties a company-scoped grant to the membership it was made
    through; it is NULL only for the global ROOT grant.
    """

    __tablename__ = "user_roles"

    user_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("users.id"), nullable=False, index=True
    )
    role_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("roles.id"), nullable=False, index=True
    )
    company_user_id: Mapped[int | None] = mapped_column(
        BigIntId,
        ForeignKey("company_users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_role"),
    )
