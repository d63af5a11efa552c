"""Immutable configuration shared by the validator and the services."""

from dataclasses import dataclass

from bizmanager.domain.enums import ReservedRole
from bizmanager.infrastructure.config.settings import Settings


@dataclass(frozen=True)
class AuthorizationConfig:
    # ROOT is fixed by the roles table CHECK constraint and is not configurable
    admin_role_name: str = ReservedRole.ADMIN.value
    admin_role_description: str = "Company administrator with the full permission catalog"
    default_page_size: int = 100
    copy_module_actions_on_provision: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthorizationConfig":
        return cls(
            default_page_size=settings.default_page_size,
            copy_module_actions_on_provision=settings.copy_module_actions_on_provision,
        )
