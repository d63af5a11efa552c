"""
Company domain entities.

These carry decrypted contact data out of the services so the ORM rows,
which only ever hold ciphertext, are never mutated with plaintext.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class CompanyDetails:
    id: int
    name: str
    email: str | None
    phone: str | None
    address: str | None
    identifier: str | None
    logo: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class CompanyMember:
    """A user's membership in a company, with the user's decrypted email."""

    company_user_id: int
    company_id: int
    user_id: int
    email: str | None
    phone: str | None
    is_main: bool


@dataclass(frozen=True)
class CompanyDeletionCounts:
    """Rows removed per table by a company deletion"""

    company_users: int = 0
    user_roles: int = 0
    role_permissions: int = 0
    roles: int = 0
    permission_module_actions: int = 0
    permissions: int = 0
    companies: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "company_users": self.company_users,
            "user_roles": self.user_roles,
            "role_permissions": self.role_permissions,
            "roles": self.roles,
            "permission_module_actions": self.permission_module_actions,
            "permissions": self.permissions,
            "companies": self.companies,
        }


@dataclass
class ProvisioningResult:
    """Everything written by a successful company provisioning"""

    company: CompanyDetails
    company_user_id: int
    admin_role_id: int
    user_role_id: int
    permission_ids: list[int] = field(default_factory=list)

    @property
    def permissions_granted(self) -> int:
        return len(self.permission_ids)
