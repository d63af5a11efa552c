from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from bizmanager.application.services.authorization_service import AuthorizationService
from bizmanager.presentation.api.dependencies import (
    get_authz_service, get_authz_service_transactional, get_current_user,
    require_permission)
from bizmanager.presentation.api.v1.schemas.rbac import (
    ModuleActionAdd, ModuleActionResponse, ModuleActionsUpdate,
    PermissionCheckResponse, PermissionCreate, PermissionResponse,
    RoleAssignment, RoleCreate, RolePermissionsUpdate, RoleResponse,
    RoleWithPermissionsResponse, UserRoleResponse)
from bizmanager.presentation.api.v1.schemas.token import TokenPayload

router = APIRouter()


@router.get("/module-actions", response_model=list[ModuleActionResponse])
async def list_module_actions(
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    """List every module action in the catalog"""
    return [ModuleActionResponse.model_validate(a) for a in await service.list_module_actions()]


@router.get("/check", response_model=PermissionCheckResponse)
async def check_permission(
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
    module: str = Query(..., min_length=1),
    action: str = Query(..., min_length=1),
    company_id: int | None = Query(None),
):
    """Does the caller hold module:action (optionally within one company)?"""
    allowed = await service.check_permission(current_user.sub, module, action, company_id)
    return PermissionCheckResponse(
        user_id=current_user.sub,
        module=module,
        action=action,
        company_id=company_id,
        allowed=allowed,
    )


# Roles


@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    data: RoleCreate,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "create"))],
):
    return await service.create_role(
        current_user.sub, data.company_id, data.name, data.description
    )


@router.get("/roles/company/{company_id}", response_model=list[RoleResponse])
async def list_roles(
    company_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    return await service.list_roles(current_user.sub, company_id, skip=skip, limit=limit)


@router.get("/roles/{role_id}", response_model=RoleWithPermissionsResponse)
async def get_role(
    role_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    """Get a role together with its permissions"""
    role = await service.get_role(current_user.sub, role_id)
    return RoleWithPermissionsResponse.model_validate(role)


@router.post("/roles/assign", response_model=UserRoleResponse, status_code=status.HTTP_201_CREATED)
async def assign_role(
    data: RoleAssignment,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "update"))],
):
    """Grant a company role to a member of that company"""
    return await service.assign_role(current_user.sub, data.user_id, data.role_id)


@router.delete("/roles/{role_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role(
    role_id: int,
    user_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "update"))],
):
    await service.revoke_role(current_user.sub, user_id, role_id)


@router.get("/roles/{role_id}/permissions", response_model=list[PermissionResponse])
async def get_role_permissions(
    role_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    return await service.get_permissions_by_role(current_user.sub, role_id)


@router.put("/roles/{role_id}/permissions", response_model=list[PermissionResponse])
async def update_role_permissions(
    role_id: int,
    data: RolePermissionsUpdate,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "update"))],
):
    """Replace the role's permission set"""
    return await service.update_role_permissions(current_user.sub, role_id, data.permission_ids)


@router.delete(
    "/roles/{role_id}/permissions/{permission_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def remove_role_permission(
    role_id: int,
    permission_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "update"))],
):
    await service.remove_permission(current_user.sub, role_id, permission_id)


# Permissions


@router.post(
    "/permissions", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED
)
async def create_permission(
    data: PermissionCreate,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "create"))],
):
    """Create a company permission and grant it to one of the company's roles"""
    return await service.create_permission(
        current_user.sub,
        data.company_id,
        data.name,
        data.description,
        data.role_id,
        data.module_action_ids,
    )


@router.get("/permissions/company/{company_id}", response_model=list[PermissionResponse])
async def list_permissions(
    company_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    return await service.list_permissions(current_user.sub, company_id, skip=skip, limit=limit)


@router.get(
    "/permissions/{permission_id}/module-actions", response_model=list[ModuleActionResponse]
)
async def get_permission_module_actions(
    permission_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    actions = await service.get_permission_module_actions(current_user.sub, permission_id)
    return [ModuleActionResponse.model_validate(a) for a in actions]


@router.post(
    "/permissions/{permission_id}/module-actions",
    response_model=list[ModuleActionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_permission_module_action(
    permission_id: int,
    data: ModuleActionAdd,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "update"))],
):
    actions = await service.add_permission_module_action(
        current_user.sub, permission_id, data.module_action_id
    )
    return [ModuleActionResponse.model_validate(a) for a in actions]


@router.put(
    "/permissions/{permission_id}/module-actions", response_model=list[ModuleActionResponse]
)
async def update_permission_module_actions(
    permission_id: int,
    data: ModuleActionsUpdate,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("role", "update"))],
):
    """Replace the module actions a permission grants"""
    actions = await service.update_permission_module_actions(
        current_user.sub, permission_id, data.module_action_ids
    )
    return [ModuleActionResponse.model_validate(a) for a in actions]


@router.get("/users/{user_id}/permissions", response_model=list[PermissionResponse])
async def get_user_permissions(
    user_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[AuthorizationService, Depends(get_authz_service)],
    company_id: int = Query(...),
):
    """Permissions a member holds in one company"""
    return await service.get_user_permissions(current_user.sub, user_id, company_id)
