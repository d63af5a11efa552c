from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.infrastructure.persistence.models.catalog import Module, ModuleAction
from bizmanager.infrastructure.persistence.repositories.base import BaseRepository


class ModuleRepository(BaseRepository[Module]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Module)

    async def get_by_name(self, name: str) -> Module | None:
        result = await self.db.execute(select(Module).where(Module.name == name))
        return result.scalar_one_or_none()


class ModuleActionRepository(BaseRepository[ModuleAction]):
    """Module actions, read together with their module name"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ModuleAction)

    async def get_by_module_and_name(
        self, module: str, action: str
    ) -> ModuleAction | None:
        """Resolve 'module:action' to its ModuleAction row"""
        result = await self.db.execute(
            select(ModuleAction)
            .join(Module, Module.id == ModuleAction.module_id)
            .where(Module.name == module, ModuleAction.name == action)
        )
        return result.scalar_one_or_none()

    async def get_by_module_id_and_name(
        self, module_id: int, action: str
    ) -> ModuleAction | None:
        result = await self.db.execute(
            select(ModuleAction).where(
                ModuleAction.module_id == module_id, ModuleAction.name == action
            )
        )
        return result.scalar_one_or_none()

    async def get_by_ids(self, ids: list[int]) -> list[ModuleAction]:
        if not ids:
            return []
        result = await self.db.execute(select(ModuleAction).where(ModuleAction.id.in_(ids)))
        return list(result.scalars().all())

    async def list_with_modules(
        self, ids: list[int] | None = None
    ) -> list[tuple[ModuleAction, str]]:
        """(action, module name) pairs ordered by module then action"""
        query = select(ModuleAction, Module.name).join(
            Module, Module.id == ModuleAction.module_id
        )
        if ids is not None:
            if not ids:
                return []
            query = query.where(ModuleAction.id.in_(ids))
        result = await self.db.execute(query.order_by(Module.id, ModuleAction.id))
        return [(action, module_name) for action, module_name in result.all()]
