"""Repository for FolderAuditEntry entity.

Append-only: entries are never updated or deleted.
"""

from datetime import datetime
from uuid import UUID

from sqlmodel import select

from src.allocator.models import AuditAction, AuditOutcome, FolderAuditEntry
from src.allocator.repositories.base import BaseRepository


class FolderAuditRepository(BaseRepository[FolderAuditEntry]):
    """Repository for FolderAuditEntry entity in public schema."""

    model = FolderAuditEntry

    def append(self, entry: FolderAuditEntry) -> None:
        """Stage an entry in the caller's transaction (no flush/commit)."""
        self.add(entry)

    async def list_entries(
        self,
        project_id: UUID | None = None,
        folder_id: UUID | None = None,
        user_id: UUID | None = None,
        action: AuditAction | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[FolderAuditEntry], str | None, bool]:
        """List audit entries, newest first.

        Args:
            project_id: Optional project filter
            folder_id: Optional folder filter
            user_id: Optional holder filter
            action: Optional action filter
            cursor: Pagination cursor
            limit: Maximum items to return

        Returns:
            Tuple of (entries, next_cursor, has_more)
        """
        query = select(FolderAuditEntry)

        if project_id:
            query = query.where(FolderAuditEntry.project_id == project_id)
        if folder_id:
            query = query.where(FolderAuditEntry.folder_id == folder_id)
        if user_id:
            query = query.where(FolderAuditEntry.user_id == user_id)
        if action:
            query = query.where(FolderAuditEntry.action == action.value)

        return await self.paginate(query, cursor, limit)

    async def latest_transition(self, folder_id: UUID, at: datetime) -> FolderAuditEntry | None:
        """Get the last successful claim or release of a folder at or before `at`.

        Only `ok` entries change who holds a folder; re-claims and releases of
        a free folder leave the holder untouched.
        """
        result = await self.session.execute(
            select(FolderAuditEntry)
            .where(
                FolderAuditEntry.folder_id == folder_id,
                FolderAuditEntry.outcome == AuditOutcome.OK.value,
                FolderAuditEntry.created_at <= at,  # type: ignore[operator]
            )
            .order_by(FolderAuditEntry.created_at.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        return result.scalar_one_or_none()
