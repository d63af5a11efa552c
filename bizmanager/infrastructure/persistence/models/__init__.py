from bizmanager.infrastructure.persistence.models.catalog import (Module,
                                                                 ModuleAction)
from bizmanager.infrastructure.persistence.models.company import (Company,
                                                                 CompanyUser)
# Mixins for model composition
from bizmanager.infrastructure.persistence.models.mixins import (
    CompanyScopedMixin, IntegerIdMixin, OptionalCompanyMixin, TimestampMixin)
from bizmanager.infrastructure.persistence.models.permission import (
    Permission, PermissionModuleAction, RolePermission)
from bizmanager.infrastructure.persistence.models.role import Role, UserRole
from bizmanager.infrastructure.persistence.models.user import User

__all__ = [
    # Models
    "Company",
    "CompanyUser",
    "User",
    "Module",
    "ModuleAction",
    "Role",
    "UserRole",
    "Permission",
    "RolePermission",
    "PermissionModuleAction",
    # Mixins
    "IntegerIdMixin",
    "CompanyScopedMixin",
    "OptionalCompanyMixin",
    "TimestampMixin",
]
