import pytest

from bizmanager.application.services.catalog_seed_service import (
    CATALOG_PERMISSIONS, DEFAULT_MODULE_ACTIONS, DEFAULT_MODULES)
from bizmanager.domain.exceptions import ResourceNotFoundException
from bizmanager.infrastructure.persistence.repositories import (
    PermissionRepository, RoleRepository)


class TestCatalogSeedService:
    """Seeding the global catalog and bootstrapping ROOT"""

    async def test_first_run_creates_everything(self, test_db, seed_service):
        result = await seed_service.seed()

        assert result == {
            "modules_created": len(DEFAULT_MODULES),
            "module_actions_created": len(DEFAULT_MODULE_ACTIONS),
            "permissions_created": len(CATALOG_PERMISSIONS),
            "module_action_links_created": len(DEFAULT_MODULE_ACTIONS),
            "root_role_created": True,
            "root_grants_created": len(CATALOG_PERMISSIONS),
        }

        root = await RoleRepository(test_db).get_root_role()
        granted = await PermissionRepository(test_db).get_permissions_for_role(root.id)
        assert root.company_id is None
        assert {p.name for p in granted} == {name for name, _, _ in CATALOG_PERMISSIONS}

    async def test_second_run_is_a_no_op(self, test_db, seed_service):
        """
        GIVEN a catalog that is already seeded
        WHEN seeding runs again
        THEN nothing new is created.
        """
        await seed_service.seed()
        await test_db.commit()

        result = await seed_service.seed()

        assert result == {
            "modules_created": 0,
            "module_actions_created": 0,
            "permissions_created": 0,
            "module_action_links_created": 0,
            "root_role_created": False,
            "root_grants_created": 0,
        }
        assert len(await PermissionRepository(test_db).get_catalog()) == len(CATALOG_PERMISSIONS)

    async def test_bootstrap_root_user_is_idempotent(
        self, test_db, seed_service, seeded_catalog, owner
    ):
        first = await seed_service.bootstrap_root_user(owner.id)
        await test_db.commit()
        second = await seed_service.bootstrap_root_user(owner.id)

        assert first.id == second.id
        assert first.company_user_id is None
        assert await RoleRepository(test_db).is_root(owner.id)

    async def test_root_passes_checks_in_every_company(
        self, authz_service, acme, root_user
    ):
        assert await authz_service.check_permission(
            root_user.id, "company", "delete", company_id=acme.company.id
        )

    async def test_bootstrap_unknown_user(self, seed_service, seeded_catalog):
        with pytest.raises(ResourceNotFoundException):
            await seed_service.bootstrap_root_user(4242)

    async def test_bootstrap_before_seeding(self, seed_service, owner):
        with pytest.raises(ResourceNotFoundException):
            await seed_service.bootstrap_root_user(owner.id)
