from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from bizmanager.infrastructure.persistence.database import Base
from bizmanager.infrastructure.persistence.models.mixins import (
    BigIntId, IntegerIdMixin, OptionalCompanyMixin, TimestampMixin)


class Permission(IntegerIdMixin, OptionalCompanyMixin, TimestampMixin, Base):
    """
    Named capability that maps to one or more module actions.

    company_id NULL marks a global catalog permission; provisioning copies
    those into every new company.
    """

    __tablename__ = "permissions"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_permissions_company_name"),
        Index(
            "uq_permissions_global_name",
            "name",
            unique=True,
            sqlite_where=text("company_id IS NULL"),
            postgresql_where=text("company_id IS NULL"),
        ),
    )

    @property
    def is_global(self) -> bool:
        return self.company_id is None


class RolePermission(IntegerIdMixin, Base):
    """Many-to-many: roles ←→ permissions."""

    __tablename__ = "role_permissions"

    role_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("roles.id"), nullable=False, index=True
    )
    permission_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("permissions.id"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
    )


class PermissionModuleAction(IntegerIdMixin, Base):
    """Many-to-many: permissions ←→ module actions."""

    __tablename__ = "permission_module_actions"

    permission_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("permissions.id"), nullable=False, index=True
    )
    module_action_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("module_actions.id"), nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint(
            "permission_id", "module_action_id", name="uq_permission_module_actions_pair"
        ),
    )
