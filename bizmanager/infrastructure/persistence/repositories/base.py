from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from bizmanager.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository implementing common CRUD operations.

    Repositories only flush; committing is left to the session owner so a
    workflow spanning several repositories stays one transaction. No
    repository depends on another.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: int) -> ModelType | None:
        """Get a single record by ID"""
        # Cast to Any for SQLAlchemy dynamic attribute access (id comes from IntegerIdMixin)
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self, skip: int = 0, limit: int = 100) -> list[ModelType]:
        """Get all records with pagination"""
        model: Any = self.model
        result = await self.db.execute(
            select(self.model).order_by(model.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def create(self, obj: ModelType) -> ModelType:
        """Add a new record and flush so its id is populated"""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def create_many(self, objs: list[ModelType]) -> list[ModelType]:
        """Add several records in one flush"""
        if not objs:
            return []
        self.db.add_all(objs)
        await self.db.flush()
        return objs

    async def update(self, obj: ModelType) -> ModelType:
        """
        Update an existing record.

        Handles potentially detached objects by merging back to session.
        """
        if object_session(obj) is None:
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete a record"""
        await self.db.delete(obj)
        await self.db.flush()
