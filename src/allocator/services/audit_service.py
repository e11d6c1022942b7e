"""Folder audit service - the append-only history of allocation decisions."""

from datetime import datetime
from uuid import UUID

from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession

from src.allocator.core.audit_context import get_audit_context
from src.allocator.core.logging import get_logger
from src.allocator.models import AuditAction, AuditOutcome, FolderAuditEntry
from src.allocator.repositories import FolderAuditRepository

logger = get_logger(__name__)

ALLOCATION_DECISIONS = Counter(
    "folder_allocation_decisions_total",
    "Committed claim and release decisions",
    ["action", "outcome"],
)


def count_decision(entry: FolderAuditEntry) -> None:
    """Count a decision once its transaction has committed."""
    ALLOCATION_DECISIONS.labels(action=entry.action, outcome=entry.outcome).inc()


class FolderAuditService:
    """Service for recording and querying folder audit entries.

    Entries are staged in the caller's session so a decision and its audit
    entry commit together. Unlike request audit logging, failures propagate.
    """

    def __init__(self, audit_repo: FolderAuditRepository, session: AsyncSession):
        self.audit_repo = audit_repo
        self.session = session

    def record(
        self,
        action: AuditAction,
        outcome: AuditOutcome,
        project_id: UUID,
        folder_id: UUID | None = None,
        user_id: UUID | None = None,
    ) -> FolderAuditEntry:
        """Stage an audit entry for a claim or release decision.

        Request id and actor are taken from the current audit context.

        Args:
            action: Claim or release
            outcome: What the decision resolved to
            project_id: Project the decision was made in
            folder_id: Folder involved, None when no folder was available
            user_id: User bound to (or released from) the folder

        Returns:
            The staged entry (not yet committed)
        """
        ctx = get_audit_context()
        entry = FolderAuditEntry(
            project_id=project_id,
            folder_id=folder_id,
            user_id=user_id,
            action=action.value,
            outcome=outcome.value,
            actor_id=ctx.actor_id if ctx else None,
            request_id=ctx.request_id if ctx else None,
        )
        self.audit_repo.append(entry)

        logger.debug(
            "Folder audit entry staged",
            action=entry.action,
            outcome=entry.outcome,
            folder_id=str(folder_id) if folder_id else None,
        )
        return entry

    async def list_entries(
        self,
        project_id: UUID | None = None,
        folder_id: UUID | None = None,
        user_id: UUID | None = None,
        action: AuditAction | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[FolderAuditEntry], str | None, bool]:
        """List audit entries with cursor-based pagination, newest first."""
        return await self.audit_repo.list_entries(
            project_id=project_id,
            folder_id=folder_id,
            user_id=user_id,
            action=action,
            cursor=cursor,
            limit=limit,
        )

    async def holder_at(self, folder_id: UUID, at: datetime) -> UUID | None:
        """Reconstruct who held a folder at a given instant.

        Args:
            folder_id: Folder to look up
            at: Naive UTC instant

        Returns:
            The holder's user id, or None if the folder was free at `at`
        """
        entry = await self.audit_repo.latest_transition(folder_id, at)
        if entry is None or entry.action == AuditAction.RELEASE.value:
            return None
        return entry.user_id
