"""Read models for roles and permissions."""

from dataclasses import dataclass, field

from bizmanager.domain.enums import ReservedRole


@dataclass(frozen=True)
class PermissionView:
    id: int
    company_id: int | None
    name: str
    description: str | None


@dataclass(frozen=True)
class ModuleActionView:
    id: int
    module_id: int
    module: str
    name: str
    description: str | None

    @property
    def key(self) -> str:
        """Permission-style key, e.g. 'company:create'"""
        return f"{self.module}:{self.name}"


@dataclass
class RoleWithPermissions:
    id: int
    company_id: int | None
    name: str
    description: str | None
    permissions: list[PermissionView] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.company_id is None and self.name == ReservedRole.ROOT.value
