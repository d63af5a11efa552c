"""
Seed the global permission catalog and optionally bootstrap a ROOT user.

Usage:
    python -m scripts.seed_catalog
    python -m scripts.seed_catalog --root-user-id 1
    python -m scripts.seed_catalog --root-email ops@example.com --root-password 'change-me-now'
"""
import argparse
import asyncio

from bizmanager.application.services.catalog_seed_service import CatalogSeedService
from bizmanager.application.services.company_user_service import create_user_account
from bizmanager.infrastructure.persistence.database import (AsyncSessionLocal,
                                                            create_tables)
from bizmanager.infrastructure.persistence.repositories import (
    ModuleActionRepository, ModuleRepository, PermissionRepository,
    RoleRepository, UserRepository)
from bizmanager.infrastructure.security import (BcryptPasswordHasher,
                                                FieldEncryptor,
                                                create_user_token, hash_email)
from bizmanager.shared.telemetry.logging import setup_logging


async def seed(root_user_id: int | None, root_email: str | None, root_password: str | None):
    await create_tables()

    async with AsyncSessionLocal() as db:
        async with db.begin():
            user_repo = UserRepository(db)
            service = CatalogSeedService(
                module_repo=ModuleRepository(db),
                module_action_repo=ModuleActionRepository(db),
                permission_repo=PermissionRepository(db),
                role_repo=RoleRepository(db),
                user_repo=user_repo,
            )
            result = await service.seed()
            print("🌱 Catalog seeded:")
            for key, value in result.items():
                print(f"  {key}: {value}")

            if root_email:
                user = await user_repo.get_by_email_hash(hash_email(root_email))
                if user is None:
                    if not root_password:
                        raise SystemExit("--root-password is required to create a new user")
                    user = await create_user_account(
                        user_repo, FieldEncryptor(), BcryptPasswordHasher(),
                        root_email, root_password,
                    )
                    print(f"  ✓ Created user {user.id}")
                root_user_id = user.id

            if root_user_id is not None:
                await service.bootstrap_root_user(root_user_id)
                print(f"  ✓ User {root_user_id} holds ROOT")

    if root_user_id is not None:
        print("\nBearer token for the ROOT user:")
        print(f"  {create_user_token(root_user_id)}")

    print("\n✅ Catalog seeding completed successfully!")


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--root-user-id", type=int, help="Grant ROOT to an existing user id")
    parser.add_argument("--root-email", help="Create (if needed) and grant ROOT to this email")
    parser.add_argument("--root-password", help="Password for a user created via --root-email")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(seed(args.root_user_id, args.root_email, args.root_password))


if __name__ == "__main__":
    main()
