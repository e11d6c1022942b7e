"""Base repository with common CRUD operations."""

from datetime import datetime
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import tuple_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.allocator.schemas.pagination import decode_cursor, encode_cursor


def _parse_cursor(cursor: str) -> tuple[datetime, UUID] | None:
    """Split a cursor into its (created_at, id) position; None if malformed."""
    try:
        created_at, _, entity_id = decode_cursor(cursor).partition("|")
        return datetime.fromisoformat(created_at), UUID(entity_id)
    except ValueError:
        return None


ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    is done in the service layer.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by its primary key."""
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def paginate(
        self,
        query: Any,  # SelectOfScalar - SQLModel query over self.model
        cursor: str | None,
        limit: int,
    ) -> tuple[list[ModelType], str | None, bool]:
        """Page through a query newest first, keyed on (created_at, id).

        The id breaks ties between rows created in the same microsecond, so a
        page boundary never skips or repeats a row. An unreadable cursor starts
        from the first page.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        created_at = self.model.created_at  # type: ignore[attr-defined]
        entity_id = self.model.id  # type: ignore[attr-defined]

        position = _parse_cursor(cursor) if cursor else None
        if position is not None:
            query = query.where(tuple_(created_at, entity_id) < position)

        # One extra row tells us whether another page exists
        query = query.order_by(created_at.desc(), entity_id.desc()).limit(limit + 1)
        result = await self.session.execute(query)
        items = list(result.scalars().all())

        has_more = len(items) > limit
        items = items[:limit]

        next_cursor = None
        if has_more:
            last = items[-1]
            next_cursor = encode_cursor(f"{last.created_at.isoformat()}|{last.id}")  # type: ignore[attr-defined]
        return items, next_cursor, has_more
