"""Folder allocator service - claim, release and lookup.

Mutual exclusion is delegated to the store's conditional updates. This service
holds no state between calls and takes no in-process locks, so any number of
instances can serve claims against the same database.
"""

import contextlib
from collections.abc import AsyncIterator
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from src.allocator.core.config import get_settings
from src.allocator.core.errors import (
    AssignmentNotFoundError,
    FolderNotFoundError,
    NoCapacityError,
    ProjectNotFoundError,
    StoreUnavailableError,
)
from src.allocator.core.logging import get_logger
from src.allocator.models import (
    AssignResult,
    AuditAction,
    AuditOutcome,
    Folder,
    ReleaseResult,
)
from src.allocator.repositories import FolderRepository, ProjectRepository
from src.allocator.services.audit_service import FolderAuditService, count_decision

logger = get_logger(__name__)

# Connection-level failures: the store could not be reached or dropped us.
STORE_ERRORS: tuple[type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
    OSError,
)


@dataclass(frozen=True)
class ClaimOutcome:
    """A successful claim. `created` is False when the user already held the folder."""

    folder: Folder
    created: bool


@dataclass(frozen=True)
class ReleaseOutcome:
    folder: Folder
    result: ReleaseResult
    previous_user_id: UUID | None


class AllocatorService:
    """Folder allocation - business logic only."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        folder_repo: FolderRepository,
        audit_service: FolderAuditService,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.folder_repo = folder_repo
        self.audit_service = audit_service
        self.session = session

    @contextlib.asynccontextmanager
    async def _store_errors(self, operation: str) -> AsyncIterator[None]:
        """Translate connection failures into StoreUnavailableError.

        Nothing is committed on this path: the transaction holding both the
        state change and its audit entry is rolled back.
        """
        try:
            yield
        except STORE_ERRORS as e:
            logger.warning("Allocation store unavailable", operation=operation, error=str(e))
            # The connection may already be gone
            with contextlib.suppress(*STORE_ERRORS):
                await self.session.rollback()
            raise StoreUnavailableError() from e

    async def claim(self, project_id: UUID, user_id: UUID) -> ClaimOutcome:
        """Bind a user to one available folder of a project.

        Re-claiming returns the user's existing folder. Lost races against
        concurrent claimants are retried against the remaining pool, up to the
        configured attempt budget (project capacity by default).

        Raises:
            ProjectNotFoundError: Unknown project
            NoCapacityError: Every folder is assigned
            StoreUnavailableError: The store could not be reached
        """
        async with self._store_errors("claim"):
            project = await self.project_repo.get_by_id(project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)
            max_attempts = get_settings().claim_max_attempts or project.capacity

            existing = await self.folder_repo.find_assignment(project_id, user_id)
            if existing is not None:
                return await self._already_assigned(existing, user_id)

            for attempt in range(1, max_attempts + 1):
                folder = await self.folder_repo.find_available(project_id)
                if folder is None:
                    # Every available row may be locked by a claim that can still roll back
                    folder = await self.folder_repo.find_available(project_id, skip_locked=False)
                if folder is None:
                    break
                folder_id = folder.id

                try:
                    result = await self.folder_repo.try_assign(folder_id, user_id)
                except IntegrityError:
                    # Another request for the same user won; its binding is committed
                    await self.session.rollback()
                    existing = await self.folder_repo.find_assignment(project_id, user_id)
                    if existing is None:
                        raise
                    return await self._already_assigned(existing, user_id)

                if result is AssignResult.ASSIGNED:
                    entry = self.audit_service.record(
                        AuditAction.CLAIM, AuditOutcome.OK, project_id, folder_id, user_id
                    )
                    await self.session.commit()
                    count_decision(entry)
                    logger.info(
                        "Folder claimed",
                        project_id=str(project_id),
                        folder_id=str(folder_id),
                        tag=folder.tag,
                        attempt=attempt,
                    )
                    return ClaimOutcome(folder=folder, created=True)

                await self.session.rollback()
                logger.info(
                    "Folder claim conflict, retrying",
                    project_id=str(project_id),
                    folder_id=str(folder_id),
                    attempt=attempt,
                )

            entry = self.audit_service.record(
                AuditAction.CLAIM, AuditOutcome.NO_CAPACITY, project_id, None, user_id
            )
            await self.session.commit()
            count_decision(entry)
            logger.info("No folder capacity", project_id=str(project_id))
            raise NoCapacityError(project_id)

    async def _already_assigned(self, folder: Folder, user_id: UUID) -> ClaimOutcome:
        entry = self.audit_service.record(
            AuditAction.CLAIM,
            AuditOutcome.ALREADY_ASSIGNED,
            folder.project_id,
            folder.id,
            user_id,
        )
        await self.session.commit()
        count_decision(entry)
        logger.info(
            "Folder already assigned",
            project_id=str(folder.project_id),
            folder_id=str(folder.id),
        )
        return ClaimOutcome(folder=folder, created=False)

    async def release(self, folder_id: UUID) -> ReleaseOutcome:
        """Return a folder to the pool.

        Releasing a folder that is already available is not an error; the
        audit trail records it as `not_assigned`.

        Raises:
            FolderNotFoundError: Unknown folder
            StoreUnavailableError: The store could not be reached
        """
        async with self._store_errors("release"):
            folder = await self.folder_repo.get_by_id(folder_id)
            if folder is None:
                raise FolderNotFoundError(folder_id)
            return await self._release(folder)

    async def release_for_user(self, project_id: UUID, user_id: UUID) -> ReleaseOutcome:
        """Release whichever folder the user holds in a project.

        Raises:
            AssignmentNotFoundError: The user holds no folder in the project
            StoreUnavailableError: The store could not be reached
        """
        async with self._store_errors("release"):
            folder = await self.folder_repo.find_assignment(project_id, user_id)
            if folder is None:
                raise AssignmentNotFoundError(project_id, user_id)
            return await self._release(folder, expected_user_id=user_id)

    async def _release(
        self, folder: Folder, expected_user_id: UUID | None = None
    ) -> ReleaseOutcome:
        result, previous_user_id = await self.folder_repo.release(
            folder.id, expected_user_id=expected_user_id
        )
        if expected_user_id is not None and result is ReleaseResult.NOT_ASSIGNED:
            # The binding changed hands after it was looked up
            await self.session.rollback()
            logger.info(
                "Assignment gone before release",
                project_id=str(folder.project_id),
                folder_id=str(folder.id),
            )
            raise AssignmentNotFoundError(folder.project_id, expected_user_id)

        outcome = AuditOutcome.OK if result is ReleaseResult.RELEASED else AuditOutcome.NOT_ASSIGNED
        entry = self.audit_service.record(
            AuditAction.RELEASE, outcome, folder.project_id, folder.id, previous_user_id
        )
        await self.session.commit()
        count_decision(entry)

        logger.info(
            "Folder released" if result is ReleaseResult.RELEASED else "Folder was not assigned",
            project_id=str(folder.project_id),
            folder_id=str(folder.id),
            tag=folder.tag,
        )
        return ReleaseOutcome(folder=folder, result=result, previous_user_id=previous_user_id)

    async def lookup_assignment(self, project_id: UUID, user_id: UUID) -> Folder:
        """Get the folder a user currently holds.

        Raises:
            AssignmentNotFoundError: The user holds no folder in the project
        """
        async with self._store_errors("lookup"):
            folder = await self.folder_repo.find_assignment(project_id, user_id)
        if folder is None:
            raise AssignmentNotFoundError(project_id, user_id)
        return folder

    async def get_folder(self, folder_id: UUID) -> Folder:
        async with self._store_errors("lookup"):
            folder = await self.folder_repo.get_by_id(folder_id)
        if folder is None:
            raise FolderNotFoundError(folder_id)
        return folder
