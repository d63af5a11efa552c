from bizmanager.infrastructure.persistence.repositories.base import BaseRepository
from bizmanager.infrastructure.persistence.repositories.catalog_repo import (
    ModuleActionRepository, ModuleRepository)
from bizmanager.infrastructure.persistence.repositories.company_repo import (
    CompanyRepository, CompanyUserRepository)
from bizmanager.infrastructure.persistence.repositories.permission_repo import \
    PermissionRepository
from bizmanager.infrastructure.persistence.repositories.role_repo import RoleRepository
from bizmanager.infrastructure.persistence.repositories.user_repo import UserRepository

__all__ = [
    "BaseRepository",
    "CompanyRepository",
    "CompanyUserRepository",
    "ModuleActionRepository",
    "ModuleRepository",
    "PermissionRepository",
    "RoleRepository",
    "UserRepository",
]
