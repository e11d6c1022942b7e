"""Repository for Folder entity - the allocation store.

All state changes go through two conditional updates, `try_assign` and
`release`. Each is a single UPDATE guarded by the current state, so two
transactions can never both act on the same stale row.
"""

from typing import Any, cast
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.allocator.models import AssignResult, Folder, FolderState, ReleaseResult
from src.allocator.models.base import utc_now
from src.allocator.repositories.base import BaseRepository


class FolderRepository(BaseRepository[Folder]):
    """Repository for Folder entity in public schema."""

    model = Folder

    async def find_available(self, project_id: UUID, skip_locked: bool = True) -> Folder | None:
        """Return the lowest-slot available folder of a project.

        Rows locked by other in-flight claims are skipped, so concurrent
        callers are handed different folders instead of queueing on one. With
        `skip_locked=False` the select waits for those claims to commit or roll
        back, so None means no folder of the project is available.
        """
        query = (
            select(Folder)
            .where(
                Folder.project_id == project_id,
                Folder.state == FolderState.AVAILABLE.value,
            )
            .order_by(Folder.slot)  # type: ignore[arg-type]
            .limit(1)
            .with_for_update(skip_locked=skip_locked)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def try_assign(self, folder_id: UUID, user_id: UUID) -> AssignResult:
        """Bind a folder to a user if it is still available.

        Raises:
            IntegrityError: The user already holds another folder in the project.
        """
        now = utc_now()
        stmt = (
            update(Folder)
            .where(
                Folder.id == folder_id,  # type: ignore[arg-type]
                Folder.state == FolderState.AVAILABLE.value,  # type: ignore[arg-type]
            )
            .values(
                state=FolderState.ASSIGNED.value,
                assigned_user_id=user_id,
                assigned_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        if cast(CursorResult[Any], result).rowcount == 1:
            return AssignResult.ASSIGNED
        return AssignResult.CONFLICT

    async def release(
        self, folder_id: UUID, expected_user_id: UUID | None = None
    ) -> tuple[ReleaseResult, UUID | None]:
        """Return an assigned folder to the pool.

        Args:
            folder_id: Folder to release
            expected_user_id: If set, release only while this user holds the
                folder; a folder held by anyone else counts as not assigned

        Returns:
            Tuple of (result, user_id that held the folder or None)
        """
        locked = await self.session.execute(
            select(Folder)
            .where(Folder.id == folder_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        folder = locked.scalar_one_or_none()
        if folder is None or not folder.is_assigned:
            return ReleaseResult.NOT_ASSIGNED, None
        previous_user_id = folder.assigned_user_id
        if expected_user_id is not None and previous_user_id != expected_user_id:
            return ReleaseResult.NOT_ASSIGNED, None

        stmt = (
            update(Folder)
            .where(
                Folder.id == folder_id,  # type: ignore[arg-type]
                Folder.state == FolderState.ASSIGNED.value,  # type: ignore[arg-type]
                Folder.assigned_user_id == previous_user_id,  # type: ignore[arg-type]
            )
            .values(
                state=FolderState.AVAILABLE.value,
                assigned_user_id=None,
                assigned_at=None,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        if cast(CursorResult[Any], result).rowcount != 1:
            return ReleaseResult.NOT_ASSIGNED, None
        return ReleaseResult.RELEASED, previous_user_id

    async def find_assignment(self, project_id: UUID, user_id: UUID) -> Folder | None:
        """Get the folder a user currently holds in a project."""
        result = await self.session.execute(
            select(Folder).where(
                Folder.project_id == project_id,
                Folder.assigned_user_id == user_id,
                Folder.state == FolderState.ASSIGNED.value,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_project(
        self, project_id: UUID, state: FolderState | None = None
    ) -> list[Folder]:
        """List a project's folders in slot order, optionally by state."""
        query = select(Folder).where(Folder.project_id == project_id)
        if state:
            query = query.where(Folder.state == state.value)
        result = await self.session.execute(query.order_by(Folder.slot))  # type: ignore[arg-type]
        return list(result.scalars().all())

    async def list_assigned(self, project_id: UUID) -> list[Folder]:
        return await self.list_by_project(project_id, FolderState.ASSIGNED)

    async def count_by_state(self, project_id: UUID) -> dict[FolderState, int]:
        """Count a project's folders per state. Missing states count as 0."""
        result = await self.session.execute(
            select(Folder.state, func.count())
            .where(Folder.project_id == project_id)
            .group_by(Folder.state)
        )
        counts = dict.fromkeys(FolderState, 0)
        for state, count in result.all():
            counts[FolderState(state)] = count
        return counts
