from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from bizmanager.application.services.catalog_seed_service import (
    CATALOG_PERMISSIONS, DEFAULT_MODULE_ACTIONS)
from bizmanager.domain.exceptions import (PermissionDeniedError,
                                          ResourceNotFoundException)
from bizmanager.infrastructure.persistence.models import (
    Company, CompanyUser, Permission, PermissionModuleAction, Role, RolePermission,
    UserRole)
from bizmanager.infrastructure.persistence.repositories import (
    PermissionRepository, RoleRepository)


async def _count_where(test_db, model, *criteria) -> int:
    result = await test_db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def _company_rows(test_db, company_id: int) -> dict[str, int]:
    role_ids = select(Role.id).where(Role.company_id == company_id)
    permission_ids = select(Permission.id).where(Permission.company_id == company_id)
    return {
        "company_users": await _count_where(
            test_db, CompanyUser, CompanyUser.company_id == company_id
        ),
        "user_roles": await _count_where(test_db, UserRole, UserRole.role_id.in_(role_ids)),
        "role_permissions": await _count_where(
            test_db, RolePermission, RolePermission.role_id.in_(role_ids)
        ),
        "roles": await _count_where(test_db, Role, Role.company_id == company_id),
        "permission_module_actions": await _count_where(
            test_db,
            PermissionModuleAction,
            PermissionModuleAction.permission_id.in_(permission_ids),
        ),
        "permissions": await _count_where(
            test_db, Permission, Permission.company_id == company_id
        ),
        "companies": await _count_where(test_db, Company, Company.id == company_id),
    }


@pytest.fixture
async def acme_with_viewer(test_db, authz_service, acme, owner, member):
    """Acme plus a Viewer role granted to the member"""
    viewer = await authz_service.create_role(owner.id, acme.company.id, "Viewer")
    await authz_service.update_role_permissions(owner.id, viewer.id, acme.permission_ids[:1])
    await authz_service.assign_role(owner.id, member.id, viewer.id)
    await test_db.commit()
    return acme


class TestDeleteCompany:
    async def test_owner_delete_leaves_no_orphans(
        self, test_db, deletion_service, authz_service, acme_with_viewer, owner
    ):
        """
        GIVEN Acme with two members, two roles and granted permissions
        WHEN the owner deletes it
        THEN every company-scoped row is gone and the counts say so.
        """
        company_id = acme_with_viewer.company.id
        role_ids = await RoleRepository(test_db).get_ids_by_company(company_id)
        permission_ids = await PermissionRepository(test_db).get_ids_by_company(company_id)

        counts = await deletion_service.delete_company(owner.id, company_id)
        await test_db.commit()

        assert counts.as_dict() == {
            "company_users": 2,
            "user_roles": 2,
            "role_permissions": len(CATALOG_PERMISSIONS) + 1,
            "roles": 2,
            "permission_module_actions": len(DEFAULT_MODULE_ACTIONS),
            "permissions": len(CATALOG_PERMISSIONS),
            "companies": 1,
        }
        assert await _count_where(test_db, CompanyUser, CompanyUser.company_id == company_id) == 0
        assert await _count_where(test_db, Role, Role.company_id == company_id) == 0
        assert await _count_where(test_db, UserRole, UserRole.role_id.in_(role_ids)) == 0
        assert (
            await _count_where(test_db, RolePermission, RolePermission.role_id.in_(role_ids))
            == 0
        )
        assert (
            await _count_where(
                test_db,
                PermissionModuleAction,
                PermissionModuleAction.permission_id.in_(permission_ids),
            )
            == 0
        )

        with pytest.raises(ResourceNotFoundException):
            await authz_service.list_roles(owner.id, company_id)

    async def test_global_catalog_survives(self, test_db, deletion_service, acme, owner):
        await deletion_service.delete_company(owner.id, acme.company.id)
        await test_db.commit()

        catalog = await PermissionRepository(test_db).get_catalog()
        root = await RoleRepository(test_db).get_root_role()

        assert len(catalog) == len(CATALOG_PERMISSIONS)
        assert root is not None
        assert await _count_where(test_db, Permission, Permission.company_id.is_(None)) == len(
            CATALOG_PERMISSIONS
        )

    async def test_other_companies_untouched(
        self, test_db, deletion_service, provisioning_service, acme, owner, outsider
    ):
        globex = await provisioning_service.provision_company(user_id=outsider.id, name="Globex")
        await test_db.commit()

        await deletion_service.delete_company(owner.id, acme.company.id)
        await test_db.commit()

        remaining = await RoleRepository(test_db).get_by_company(globex.company.id)
        assert [r.name for r in remaining] == ["ADMIN"]

    async def test_plain_member_cannot_delete(self, deletion_service, acme, member):
        with pytest.raises(PermissionDeniedError):
            await deletion_service.delete_company(member.id, acme.company.id)

    async def test_outsider_cannot_delete(self, deletion_service, acme, outsider):
        with pytest.raises(PermissionDeniedError):
            await deletion_service.delete_company(outsider.id, acme.company.id)

    async def test_root_can_delete_any_company(self, test_db, deletion_service, acme, root_user):
        counts = await deletion_service.delete_company(root_user.id, acme.company.id)

        assert counts.companies == 1

    async def test_unknown_company(self, deletion_service, seeded_catalog, owner):
        with pytest.raises(ResourceNotFoundException):
            await deletion_service.delete_company(owner.id, 9999)

    async def test_failure_partway_leaves_every_row(
        self, test_db, deletion_service, acme_with_viewer, owner
    ):
        """
        GIVEN the final company delete fails after the dependants are gone
        WHEN the surrounding transaction rolls back
        THEN every row scoped to the company is still there.
        """
        company_id = acme_with_viewer.company.id
        owner_id = owner.id
        before = await _company_rows(test_db, company_id)
        await test_db.commit()
        deletion_service.company_repo.delete_by_id = AsyncMock(
            side_effect=RuntimeError("store unavailable")
        )

        with pytest.raises(RuntimeError):
            async with test_db.begin():
                await deletion_service.delete_company(owner_id, company_id)

        assert before["companies"] == 1
        assert await _company_rows(test_db, company_id) == before
