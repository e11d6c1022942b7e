"""Reconciliation service - read-only sweeps over the allocation ledger.

Used by operators to compare the ledger with the workflow engine and the
identity provider. Nothing here changes folder state: orphaned assignments are
reported for an explicit release, never released automatically.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.allocator.core.errors import ProjectNotFoundError
from src.allocator.core.logging import get_logger
from src.allocator.models import Folder, FolderState, Project
from src.allocator.repositories import FolderRepository, ProjectRepository
from src.allocator.services.audit_service import FolderAuditService

logger = get_logger(__name__)


@dataclass(frozen=True)
class PoolStats:
    """Folder pool usage of one project."""

    project_id: UUID
    total: int
    available: int
    assigned: int

    @property
    def utilization_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.assigned * 100 / self.total, 2)


class ReconciliationService:
    def __init__(
        self,
        project_repo: ProjectRepository,
        folder_repo: FolderRepository,
        audit_service: FolderAuditService,
    ):
        self.project_repo = project_repo
        self.folder_repo = folder_repo
        self.audit_service = audit_service

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def pool_stats(self, project_id: UUID) -> PoolStats:
        """Count total, available and assigned folders of a project."""
        await self._get_project(project_id)
        counts = await self.folder_repo.count_by_state(project_id)
        available = counts[FolderState.AVAILABLE]
        assigned = counts[FolderState.ASSIGNED]
        return PoolStats(
            project_id=project_id,
            total=available + assigned,
            available=available,
            assigned=assigned,
        )

    async def list_folders(
        self, project_id: UUID, state: FolderState | None = None
    ) -> list[Folder]:
        await self._get_project(project_id)
        return await self.folder_repo.list_by_project(project_id, state)

    async def find_orphaned_assignments(
        self, project_id: UUID, active_user_ids: Iterable[UUID]
    ) -> list[Folder]:
        """Find assigned folders whose holder is not an active user.

        Args:
            project_id: Project to sweep
            active_user_ids: Users the identity provider still knows about

        Returns:
            Orphaned folders in slot order
        """
        await self._get_project(project_id)
        active = set(active_user_ids)
        orphans = [
            folder
            for folder in await self.folder_repo.list_assigned(project_id)
            if folder.assigned_user_id not in active
        ]
        if orphans:
            logger.warning(
                "Orphaned folder assignments found",
                project_id=str(project_id),
                count=len(orphans),
                tags=[folder.tag for folder in orphans],
            )
        return orphans

    async def holder_at(self, folder_id: UUID, at: datetime) -> UUID | None:
        """Who held a folder at an instant, from the audit history."""
        return await self.audit_service.holder_at(folder_id, at)
