from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from bizmanager.application.services.company_deletion_service import \
    CompanyDeletionService
from bizmanager.application.services.company_provisioning_service import \
    CompanyProvisioningService
from bizmanager.application.services.company_service import CompanyService
from bizmanager.application.services.company_user_service import CompanyUserService
from bizmanager.infrastructure.config.settings import get_settings
from bizmanager.presentation.api.dependencies import (
    get_company_service, get_company_service_transactional,
    get_company_user_service, get_company_user_service_transactional,
    get_current_user, get_deletion_service, get_provisioning_service,
    require_permission)
from bizmanager.presentation.api.v1.schemas.company import (
    CompanyCreate, CompanyDeletionResponse, CompanyMemberResponse,
    CompanyResponse, CompanyUpdate, CompanyUserAdd, CompanyUserRegister,
    ProvisioningResponse)
from bizmanager.presentation.api.v1.schemas.token import TokenPayload
from bizmanager.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()


@router.post("", response_model=ProvisioningResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_company_create)
async def create_company(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    data: CompanyCreate,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyProvisioningService, Depends(get_provisioning_service)],
):
    """
    Create a company owned by the caller.

    The caller becomes the main member and is granted a new ADMIN role
    holding a company copy of the whole permission catalog.
    """
    result = await service.provision_company(
        user_id=current_user.sub,
        name=data.name,
        email=data.email,
        phone=data.phone,
        address=data.address,
        identifier=data.identifier,
        logo=data.logo,
    )
    return ProvisioningResponse.model_validate(result)


@router.get("", response_model=list[CompanyResponse])
async def list_companies(
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyService, Depends(get_company_service)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List companies (root sees all, others their memberships)"""
    companies = await service.list_companies(current_user.sub, skip=skip, limit=limit)
    return [CompanyResponse.model_validate(c) for c in companies]


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(
    company_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyService, Depends(get_company_service)],
):
    company = await service.get_company(current_user.sub, company_id)
    return CompanyResponse.model_validate(company)


@router.patch("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: int,
    data: CompanyUpdate,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyService, Depends(get_company_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("company", "update"))],
):
    """Update company fields present in the request body"""
    company = await service.update_company(
        current_user.sub, company_id, **data.model_dump(exclude_unset=True)
    )
    return CompanyResponse.model_validate(company)


@router.delete("/{company_id}", response_model=CompanyDeletionResponse)
async def delete_company(
    company_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyDeletionService, Depends(get_deletion_service)],
    _: Annotated[TokenPayload, Depends(require_permission("company", "delete"))],
):
    """Delete a company and everything scoped to it (root or owner only)"""
    counts = await service.delete_company(current_user.sub, company_id)
    return CompanyDeletionResponse(company_id=company_id, deleted=counts.as_dict())


# Memberships


@router.post(
    "/{company_id}/users",
    response_model=CompanyMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_company_user(
    company_id: int,
    data: CompanyUserRegister,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyUserService, Depends(get_company_user_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("user", "create"))],
):
    """Create a new user directly inside the company"""
    member = await service.register_company_user(
        current_user.sub, company_id, email=data.email, password=data.password, phone=data.phone
    )
    return CompanyMemberResponse.model_validate(member)


@router.post(
    "/{company_id}/members",
    response_model=CompanyMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_existing_user(
    company_id: int,
    data: CompanyUserAdd,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyUserService, Depends(get_company_user_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("user", "create"))],
):
    """Add an already registered user to the company"""
    member = await service.add_existing_user(current_user.sub, company_id, data.user_id)
    return CompanyMemberResponse.model_validate(member)


@router.get("/{company_id}/users", response_model=list[CompanyMemberResponse])
async def list_company_users(
    company_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyUserService, Depends(get_company_user_service)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    members = await service.list_company_users(
        current_user.sub, company_id, skip=skip, limit=limit
    )
    return [CompanyMemberResponse.model_validate(m) for m in members]


@router.delete("/{company_id}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_company_user(
    company_id: int,
    user_id: int,
    current_user: Annotated[TokenPayload, Depends(get_current_user)],
    service: Annotated[CompanyUserService, Depends(get_company_user_service_transactional)],
    _: Annotated[TokenPayload, Depends(require_permission("user", "delete"))],
):
    """Remove a member and their role grants in this company"""
    await service.remove_company_user(current_user.sub, company_id, user_id)
