from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bizmanager.infrastructure.persistence.database import Base
from bizmanager.infrastructure.persistence.models.mixins import (BigIntId,
                                                                 IntegerIdMixin)


class Module(IntegerIdMixin, Base):
    """
    Functional area of the product (e.g. 'company', 'user', 'role').

    Global and seeded; modules are never company scoped.
    """

    __tablename__ = "modules"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class ModuleAction(IntegerIdMixin, Base):
    """Named operation within a module (e.g. 'create' on 'company')."""

    __tablename__ = "module_actions"

    module_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("modules.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("module_id", "name", name="uq_module_actions_module_name"),
    )
