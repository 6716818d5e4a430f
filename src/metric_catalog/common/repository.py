"""Generic async repository over a mapped model."""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from metric_catalog.common.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Shared CRUD skeleton, composed into services instead of inherited."""

    def __init__(self, model: type[ModelT]):
        self.model = model

    async def get(self, session: AsyncSession, ident: str) -> ModelT | None:
        return await session.get(self.model, ident)

    async def find_one(
        self,
        session: AsyncSession,
        *criteria: Any,
        order_by: Sequence[Any] = (),
    ) -> ModelT | None:
        query = select(self.model).where(*criteria).order_by(*order_by).limit(1)
        result = await session.execute(query)
        return result.scalars().first()

    async def find_all(
        self,
        session: AsyncSession,
        *criteria: Any,
        order_by: Sequence[Any] = (),
    ) -> list[ModelT]:
        query = select(self.model).where(*criteria).order_by(*order_by)
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, *criteria: Any) -> int:
        result = await session.execute(
            select(func.count()).select_from(self.model).where(*criteria)
        )
        return result.scalar() or 0

    async def page(
        self,
        session: AsyncSession,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ModelT], int]:
        """Return (items, total) where total ignores offset/limit."""
        total = await self.count(session, *criteria)
        query = (
            select(self.model)
            .where(*criteria)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(query)
        return list(result.scalars().all()), total

    async def add(self, session: AsyncSession, obj: ModelT) -> ModelT:
        session.add(obj)
        await session.flush()
        return obj

    async def remove(self, session: AsyncSession, obj: ModelT) -> None:
        await session.delete(obj)
        await session.flush()

    async def remove_where(self, session: AsyncSession, *criteria: Any) -> int:
        result = await session.execute(
            delete(self.model).where(*criteria).execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
