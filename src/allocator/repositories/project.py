"""Repository for Project entity."""

from sqlmodel import select

from src.allocator.models import Project
from src.allocator.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity in public schema."""

    model = Project

    async def get_by_name(self, name: str) -> Project | None:
        """Get project by its unique name."""
        result = await self.session.execute(select(Project).where(Project.name == name))
        return result.scalar_one_or_none()

    async def get_by_number(self, number: int) -> Project | None:
        """Get project by the number used in its folder tags."""
        result = await self.session.execute(select(Project).where(Project.number == number))
        return result.scalar_one_or_none()

    async def list_all(
        self, cursor: str | None = None, limit: int = 50
    ) -> tuple[list[Project], str | None, bool]:
        """List projects, newest first.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        return await self.paginate(select(Project), cursor, limit)
