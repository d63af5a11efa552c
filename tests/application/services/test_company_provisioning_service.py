from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from bizmanager.application.authorization_config import AuthorizationConfig
from bizmanager.application.services.catalog_seed_service import \
    CATALOG_PERMISSIONS
from bizmanager.domain.exceptions import (ConflictException,
                                          ResourceNotFoundException,
                                          ValidationException)
from bizmanager.infrastructure.persistence.models import (Company, CompanyUser,
                                                          Permission, Role)
from bizmanager.infrastructure.persistence.repositories import (
    CompanyRepository, CompanyUserRepository, PermissionRepository,
    RoleRepository)


async def _count(test_db, model) -> int:
    result = await test_db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestProvisionCompany:
    async def test_admin_role_holds_company_copy_of_catalog(
        self, test_db, provisioning_service, seeded_catalog, owner
    ):
        """
        GIVEN a seeded permission catalog
        WHEN a company is provisioned
        THEN its single ADMIN role holds one company-scoped copy of every catalog permission.
        """
        result = await provisioning_service.provision_company(user_id=owner.id, name="Acme")
        await test_db.commit()

        roles = await RoleRepository(test_db).get_by_company(result.company.id)
        assert [(r.id, r.name) for r in roles] == [(result.admin_role_id, "ADMIN")]

        granted = await PermissionRepository(test_db).get_permissions_for_role(
            result.admin_role_id
        )
        assert {p.name for p in granted} == {name for name, _, _ in CATALOG_PERMISSIONS}
        assert all(p.company_id == result.company.id for p in granted)
        assert sorted(p.id for p in granted) == sorted(result.permission_ids)
        assert result.permissions_granted == len(CATALOG_PERMISSIONS)

    async def test_creator_is_main_member_with_admin_grant(
        self, test_db, provisioning_service, seeded_catalog, owner
    ):
        result = await provisioning_service.provision_company(user_id=owner.id, name="Acme")
        await test_db.commit()

        membership = await CompanyUserRepository(test_db).get_membership(
            result.company.id, owner.id
        )
        user_role = await RoleRepository(test_db).get_user_role(owner.id, result.admin_role_id)

        assert membership is not None and membership.is_main
        assert membership.id == result.company_user_id
        assert user_role is not None and user_role.id == result.user_role_id
        assert user_role.company_user_id == membership.id

    async def test_contact_fields_are_stored_encrypted(
        self, test_db, provisioning_service, seeded_catalog, owner, cipher
    ):
        result = await provisioning_service.provision_company(
            user_id=owner.id,
            name="Acme",
            email="contact@acme.test",
            phone="+1-555-0100",
            address="1 Acme Way",
        )
        await test_db.commit()

        row = await CompanyRepository(test_db).get_by_id(result.company.id)
        assert row.email != "contact@acme.test"
        assert cipher.decrypt(row.email) == "contact@acme.test"
        assert result.company.email == "contact@acme.test"
        assert result.company.phone == "+1-555-0100"
        assert result.company.address == "1 Acme Way"

    async def test_empty_catalog_still_creates_admin(
        self, test_db, provisioning_service, owner
    ):
        """
        GIVEN no catalog has been seeded
        WHEN a company is provisioned
        THEN ADMIN exists but has nothing to hold.
        """
        result = await provisioning_service.provision_company(user_id=owner.id, name="Acme")
        await test_db.commit()

        assert result.permission_ids == []
        assert await RoleRepository(test_db).get_by_id(result.admin_role_id) is not None

    async def test_same_owner_same_name_conflicts(
        self, test_db, provisioning_service, seeded_catalog, owner, outsider
    ):
        await provisioning_service.provision_company(user_id=owner.id, name="Acme")
        await test_db.commit()

        with pytest.raises(ConflictException):
            await provisioning_service.provision_company(user_id=owner.id, name="acme")

        # Another user may reuse the name
        other = await provisioning_service.provision_company(user_id=outsider.id, name="Acme")
        assert other.company.name == "Acme"

    async def test_identifier_must_be_unique(
        self, test_db, provisioning_service, seeded_catalog, owner, outsider
    ):
        await provisioning_service.provision_company(
            user_id=owner.id, name="Acme", identifier="acme"
        )
        await test_db.commit()

        with pytest.raises(ConflictException):
            await provisioning_service.provision_company(
                user_id=outsider.id, name="Acme Two", identifier="acme"
            )

    async def test_unknown_user(self, provisioning_service, seeded_catalog):
        with pytest.raises(ResourceNotFoundException):
            await provisioning_service.provision_company(user_id=4242, name="Acme")

    async def test_blank_name(self, provisioning_service, owner):
        with pytest.raises(ValidationException):
            await provisioning_service.provision_company(user_id=owner.id, name="  ")

    async def test_failure_rolls_back_every_step(
        self, test_db, provisioning_service, seeded_catalog, owner
    ):
        """
        GIVEN the final role grant fails
        WHEN the surrounding transaction is rolled back
        THEN no company, membership, role or company permission survives.
        """
        owner_id = owner.id
        catalog_size = await _count(test_db, Permission)
        provisioning_service.role_repo.assign_role_to_user = AsyncMock(
            side_effect=RuntimeError("store unavailable")
        )

        with pytest.raises(RuntimeError):
            await provisioning_service.provision_company(user_id=owner_id, name="Acme")
        await test_db.rollback()

        assert await _count(test_db, Company) == 0
        assert await _count(test_db, CompanyUser) == 0
        assert await _count(test_db, Role) == 1  # ROOT
        assert await _count(test_db, Permission) == catalog_size

    async def test_copies_without_module_actions_when_disabled(
        self, test_db, provisioning_service, seeded_catalog, owner
    ):
        """
        GIVEN module-action copying switched off in the config
        WHEN a company is provisioned
        THEN ADMIN holds the permission copies but they grant no actions.
        """
        provisioning_service.config = AuthorizationConfig(copy_module_actions_on_provision=False)

        result = await provisioning_service.provision_company(user_id=owner.id, name="Acme")
        await test_db.commit()

        links = await PermissionRepository(test_db).get_module_action_links(result.permission_ids)
        assert len(result.permission_ids) == len(CATALOG_PERMISSIONS)
        assert all(links[pid] == [] for pid in result.permission_ids)
        assert not await PermissionRepository(test_db).user_has_action(
            owner.id, "company", "read", result.company.id
        )
