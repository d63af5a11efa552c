from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.application.services.access_validator import AccessValidator
from bizmanager.application.services.authorization_service import AuthorizationService
from bizmanager.application.services.company_deletion_service import \
    CompanyDeletionService
from bizmanager.application.services.company_provisioning_service import \
    CompanyProvisioningService
from bizmanager.application.services.company_service import CompanyService
from bizmanager.application.services.company_user_service import CompanyUserService
from bizmanager.domain.exceptions import AuthenticationException
from bizmanager.infrastructure.config.settings import get_settings
from bizmanager.infrastructure.persistence.database import get_db, get_db_transactional
from bizmanager.infrastructure.persistence.repositories import (
    CompanyRepository, CompanyUserRepository, ModuleActionRepository,
    PermissionRepository, RoleRepository, UserRepository)
from bizmanager.infrastructure.security.field_encryption import FieldEncryptor
from bizmanager.infrastructure.security.jwt import verify_token
from bizmanager.infrastructure.security.password import BcryptPasswordHasher
from bizmanager.presentation.api.v1.schemas.token import TokenPayload
from bizmanager.shared.context import set_current_actor

# Missing credentials are reported through AuthenticationException (401)
security = HTTPBearer(auto_error=False)


@lru_cache
def get_authorization_config() -> AuthorizationConfig:
    """Authorization config built once from settings"""
    return AuthorizationConfig.from_settings(get_settings())


@lru_cache
def get_field_encryptor() -> FieldEncryptor:
    """Field encryptor singleton; key derivation runs once per process"""
    return FieldEncryptor()


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> TokenPayload:
    """
    Validate the bearer token and bind its subject as the request actor.
    Token must contain 'sub' (user_id).
    """
    if credentials is None:
        raise AuthenticationException("Missing bearer token")
    try:
        payload = verify_token(credentials.credentials)
        token_data = TokenPayload(**payload)
    except (ValueError, ValidationError) as e:
        raise AuthenticationException("Invalid authentication credentials") from e

    client_ip = request.client.host if request.client else None
    set_current_actor(token_data.sub, ip_address=client_ip)
    return token_data


def _build_validator(db: AsyncSession, config: AuthorizationConfig) -> AccessValidator:
    return AccessValidator(
        company_repo=CompanyRepository(db),
        company_user_repo=CompanyUserRepository(db),
        role_repo=RoleRepository(db),
        permission_repo=PermissionRepository(db),
        config=config,
    )


def _build_authz_service(db: AsyncSession, config: AuthorizationConfig) -> AuthorizationService:
    return AuthorizationService(
        validator=_build_validator(db, config),
        role_repo=RoleRepository(db),
        permission_repo=PermissionRepository(db),
        module_action_repo=ModuleActionRepository(db),
        company_user_repo=CompanyUserRepository(db),
        config=config,
    )


async def get_authz_service(
    db: AsyncSession = Depends(get_db),
    config: AuthorizationConfig = Depends(get_authorization_config),
) -> AuthorizationService:
    """Authorization service for read operations and permission checks"""
    return _build_authz_service(db, config)


async def get_authz_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    config: AuthorizationConfig = Depends(get_authorization_config),
) -> AuthorizationService:
    """Authorization service with transaction management"""
    return _build_authz_service(db, config)


def _build_company_service(
    db: AsyncSession, config: AuthorizationConfig, cipher: FieldEncryptor
) -> CompanyService:
    return CompanyService(
        validator=_build_validator(db, config),
        company_repo=CompanyRepository(db),
        cipher=cipher,
        config=config,
    )


async def get_company_service(
    db: AsyncSession = Depends(get_db),
    config: AuthorizationConfig = Depends(get_authorization_config),
    cipher: FieldEncryptor = Depends(get_field_encryptor),
) -> CompanyService:
    return _build_company_service(db, config, cipher)


async def get_company_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    config: AuthorizationConfig = Depends(get_authorization_config),
    cipher: FieldEncryptor = Depends(get_field_encryptor),
) -> CompanyService:
    return _build_company_service(db, config, cipher)


async def get_provisioning_service(
    db: AsyncSession = Depends(get_db_transactional),
    config: AuthorizationConfig = Depends(get_authorization_config),
    cipher: FieldEncryptor = Depends(get_field_encryptor),
) -> CompanyProvisioningService:
    """Company provisioning service with transaction management"""
    return CompanyProvisioningService(
        company_repo=CompanyRepository(db),
        company_user_repo=CompanyUserRepository(db),
        user_repo=UserRepository(db),
        role_repo=RoleRepository(db),
        permission_repo=PermissionRepository(db),
        cipher=cipher,
        config=config,
    )


async def get_deletion_service(
    db: AsyncSession = Depends(get_db_transactional),
    config: AuthorizationConfig = Depends(get_authorization_config),
) -> CompanyDeletionService:
    """Company deletion service with transaction management"""
    return CompanyDeletionService(
        validator=_build_validator(db, config),
        company_repo=CompanyRepository(db),
        company_user_repo=CompanyUserRepository(db),
        role_repo=RoleRepository(db),
        permission_repo=PermissionRepository(db),
    )


def _build_company_user_service(
    db: AsyncSession, config: AuthorizationConfig, cipher: FieldEncryptor
) -> CompanyUserService:
    return CompanyUserService(
        validator=_build_validator(db, config),
        company_repo=CompanyRepository(db),
        company_user_repo=CompanyUserRepository(db),
        user_repo=UserRepository(db),
        role_repo=RoleRepository(db),
        cipher=cipher,
        password_hasher=BcryptPasswordHasher(),
        config=config,
    )


async def get_company_user_service(
    db: AsyncSession = Depends(get_db),
    config: AuthorizationConfig = Depends(get_authorization_config),
    cipher: FieldEncryptor = Depends(get_field_encryptor),
) -> CompanyUserService:
    return _build_company_user_service(db, config, cipher)


async def get_company_user_service_transactional(
    db: AsyncSession = Depends(get_db_transactional),
    config: AuthorizationConfig = Depends(get_authorization_config),
    cipher: FieldEncryptor = Depends(get_field_encryptor),
) -> CompanyUserService:
    return _build_company_user_service(db, config, cipher)


def require_permission(module: str, action: str):
    """
    Dependency factory for route-level permission checking.

    Coarse pre-check: the actor must hold module:action through some role.
    The service behind the route repeats the check scoped to the target
    company once that company is known, and only that decision grants access.

    Usage:
        @router.post("/roles", dependencies=[Depends(require_permission("role", "create"))])
        async def create_role(...):
            ...
    """

    async def permission_checker(
        user: TokenPayload = Depends(get_current_user),
        authz_service: AuthorizationService = Depends(get_authz_service),
    ) -> TokenPayload:
        await authz_service.require_permission(user.sub, module, action)
        return user

    return permission_checker
