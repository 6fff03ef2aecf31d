"""
Base Repository Pattern

Purpose
-------
Type-safe generic data access over SQLAlchemy 2.0 async sessions. This is
the engine's view of the storage contract: get by id, add, delete, and
indexed equality queries.

Design Notes
------------
- Repositories never open or commit transactions; the caller passes the
  session of its unit of work.
- `for_update=True` adds `SELECT ... FOR UPDATE`. SQLite ignores the clause;
  atomicity there comes from `DatabaseService`'s unit-of-work lock.
- No business logic.

Usage
-----
    class QuestInstanceRepository(BaseRepository[QuestInstance]):
        async def find_active(self, session, quest_type):
            return await self.find_many_where(
                session,
                QuestInstance.type == quest_type,
                QuestInstance.status == QuestStatus.ACTIVE,
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Generic base repository.

    Type Parameters:
        T: The SQLAlchemy model class this repository manages
    """

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    async def get(
        self, session: AsyncSession, id_value: Any, *, for_update: bool = False
    ) -> Optional[T]:
        """Get a single record by primary key."""
        stmt = select(self.model_class).where(self.model_class.id == id_value)  # type: ignore[attr-defined]
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        instance = result.scalar_one_or_none()

        self.log.debug(
            f"Repository.get: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "id": id_value,
                "found": instance is not None,
                "locked": for_update,
            },
        )
        return instance

    async def get_for_update(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        return await self.get(session, id_value, for_update=True)

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        """First record matching all conditions, or None."""
        stmt = select(self.model_class).where(*conditions).limit(1)
        if for_update:
            stmt = stmt.with_for_update()

        result = await session.execute(stmt)
        return result.scalars().first()

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        """All records matching all conditions."""
        stmt = select(self.model_class).where(*conditions)
        if for_update:
            stmt = stmt.with_for_update()
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await session.execute(stmt)
        instances = list(result.scalars().all())

        self.log.debug(
            f"Repository.find_many_where: {self.model_class.__name__}",
            extra={
                "model": self.model_class.__name__,
                "found_count": len(instances),
                "locked": for_update,
            },
        )
        return instances

    async def exists(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> bool:
        return await self.count(session, *conditions) > 0

    async def count(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        self.log.debug(
            f"Repository.add: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__},
        )
        return instance

    def add_many(self, session: AsyncSession, instances: Sequence[T]) -> List[T]:
        session.add_all(instances)
        self.log.debug(
            f"Repository.add_many: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__, "count": len(instances)},
        )
        return list(instances)

    async def delete(self, session: AsyncSession, instance: T) -> None:
        await session.delete(instance)
        self.log.debug(
            f"Repository.delete: {self.model_class.__name__}",
            extra={"model": self.model_class.__name__},
        )

    async def flush(self, session: AsyncSession) -> None:
        """Flush pending changes so generated ids are available."""
        await session.flush()
