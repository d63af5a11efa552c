"""Shared test fixtures for pytest"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")
os.environ.setdefault("ENCRYPTION_SALT", "test-encryption-salt")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SEED_CATALOG_ON_STARTUP", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from bizmanager.application.authorization_config import AuthorizationConfig  # noqa: E402
from bizmanager.application.services import (AccessValidator,  # noqa: E402
                                             AuthorizationService,
                                             CatalogSeedService,
                                             CompanyDeletionService,
                                             CompanyProvisioningService,
                                             CompanyService,
                                             CompanyUserService)
from bizmanager.infrastructure.persistence.database import (  # noqa: E402
    build_engine, build_sessionmaker, create_tables, get_db,
    get_db_transactional)
from bizmanager.infrastructure.persistence.models import (  # noqa: E402
    CompanyUser, User)
from bizmanager.infrastructure.persistence.repositories import (  # noqa: E402
    CompanyRepository, CompanyUserRepository, ModuleActionRepository,
    ModuleRepository, PermissionRepository, RoleRepository, UserRepository)
from bizmanager.infrastructure.security import (BcryptPasswordHasher,  # noqa: E402
                                                create_user_token,
                                                get_password_hash, hash_email)
from bizmanager.main import app  # noqa: E402
from bizmanager.presentation.api.dependencies import get_field_encryptor  # noqa: E402
from bizmanager.presentation.middleware.rate_limit import limiter  # noqa: E402

TEST_PASSWORD = "testpass123"
# bcrypt is slow on purpose; hash once for every fixture user
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def test_engine(tmp_path):
    """File-backed SQLite engine so API sessions and fixtures share data"""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'bizmanager_test.db'}")
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    """Create test database session"""
    async with build_sessionmaker(test_engine)() as session:
        yield session


@pytest.fixture
def cipher():
    return get_field_encryptor()


@pytest.fixture
def authz_config() -> AuthorizationConfig:
    return AuthorizationConfig()


@pytest.fixture
async def client(test_engine):
    """HTTP client for API testing"""
    session_factory = build_sessionmaker(test_engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_db_transactional():
        async with session_factory() as session:
            async with session.begin():
                yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_db_transactional] = override_get_db_transactional
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers_for():
    """Build bearer headers for a user id"""

    def _headers(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_user_token(user_id)}"}

    return _headers


# Services


@pytest.fixture
def validator(test_db, authz_config) -> AccessValidator:
    return AccessValidator(
        company_repo=CompanyRepository(test_db),
        company_user_repo=CompanyUserRepository(test_db),
        role_repo=RoleRepository(test_db),
        permission_repo=PermissionRepository(test_db),
        config=authz_config,
    )


@pytest.fixture
def authz_service(test_db, validator, authz_config) -> AuthorizationService:
    return AuthorizationService(
        validator=validator,
        role_repo=RoleRepository(test_db),
        permission_repo=PermissionRepository(test_db),
        module_action_repo=ModuleActionRepository(test_db),
        company_user_repo=CompanyUserRepository(test_db),
        config=authz_config,
    )


@pytest.fixture
def provisioning_service(test_db, cipher, authz_config) -> CompanyProvisioningService:
    return CompanyProvisioningService(
        company_repo=CompanyRepository(test_db),
        company_user_repo=CompanyUserRepository(test_db),
        user_repo=UserRepository(test_db),
        role_repo=RoleRepository(test_db),
        permission_repo=PermissionRepository(test_db),
        cipher=cipher,
        config=authz_config,
    )


@pytest.fixture
def deletion_service(test_db, validator) -> CompanyDeletionService:
    return CompanyDeletionService(
        validator=validator,
        company_repo=CompanyRepository(test_db),
        company_user_repo=CompanyUserRepository(test_db),
        role_repo=RoleRepository(test_db),
        permission_repo=PermissionRepository(test_db),
    )


@pytest.fixture
def company_service(test_db, validator, cipher, authz_config) -> CompanyService:
    return CompanyService(
        validator=validator,
        company_repo=CompanyRepository(test_db),
        cipher=cipher,
        config=authz_config,
    )


@pytest.fixture
def company_user_service(test_db, validator, cipher, authz_config) -> CompanyUserService:
    return CompanyUserService(
        validator=validator,
        company_repo=CompanyRepository(test_db),
        company_user_repo=CompanyUserRepository(test_db),
        user_repo=UserRepository(test_db),
        role_repo=RoleRepository(test_db),
        cipher=cipher,
        password_hasher=BcryptPasswordHasher(),
        config=authz_config,
    )


@pytest.fixture
def seed_service(test_db) -> CatalogSeedService:
    return CatalogSeedService(
        module_repo=ModuleRepository(test_db),
        module_action_repo=ModuleActionRepository(test_db),
        permission_repo=PermissionRepository(test_db),
        role_repo=RoleRepository(test_db),
        user_repo=UserRepository(test_db),
    )


# Data


@pytest.fixture
async def seeded_catalog(test_db, seed_service):
    """Seed modules, actions, catalog permissions and the ROOT role"""
    result = await seed_service.seed()
    await test_db.commit()
    return result


@pytest.fixture
def make_user(test_db, cipher):
    """Insert and commit a user with the shared test password"""

    async def _make_user(email: str) -> User:
        user = await UserRepository(test_db).create(
            User(
                email=cipher.encrypt(email),
                email_hash=hash_email(email),
                password=TEST_PASSWORD_HASH,
            )
        )
        await test_db.commit()
        return user

    return _make_user


@pytest.fixture
async def owner(make_user) -> User:
    """Creates and owns the Acme company"""
    return await make_user("owner@acme.test")


@pytest.fixture
async def member(make_user) -> User:
    """Plain member of Acme"""
    return await make_user("member@acme.test")


@pytest.fixture
async def outsider(make_user) -> User:
    """Belongs to no Acme membership"""
    return await make_user("outsider@globex.test")


@pytest.fixture
async def acme(test_db, seeded_catalog, provisioning_service, owner, member):
    """Acme provisioned for owner, with member added as a plain CompanyUser"""
    result = await provisioning_service.provision_company(
        user_id=owner.id,
        name="Acme",
        email="contact@acme.test",
        phone="+1-555-0100",
        address="1 Acme Way",
        identifier="acme",
    )
    await CompanyUserRepository(test_db).create(
        CompanyUser(company_id=result.company.id, user_id=member.id, is_main=False)
    )
    await test_db.commit()
    return result


@pytest.fixture
async def root_user(test_db, seeded_catalog, seed_service, make_user) -> User:
    """User holding the global ROOT role"""
    user = await make_user("root@bizmanager.test")
    await seed_service.bootstrap_root_user(user.id)
    await test_db.commit()
    return user


@pytest.fixture
async def member_company(test_db, acme, provisioning_service, member):
    """Company owned by Acme's role-less member, so they hold ADMIN elsewhere"""
    result = await provisioning_service.provision_company(user_id=member.id, name="MemberCo")
    await test_db.commit()
    return result
