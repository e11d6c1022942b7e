"""In-memory stand-ins for the allocation store, for unit tests.

The fake repositories keep the production contract that matters for the claim
protocol: `try_assign` and `release` check and change state without yielding
to the event loop (they are atomic), while `find_available` yields so that
concurrent claimants interleave and race for the same folder. Each
FakeSession keeps an undo log so rollback restores folder state and drops
uncommitted audit entries, like a database transaction.
"""

import asyncio
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from src.allocator.models import (
    AssignResult,
    Folder,
    FolderAuditEntry,
    FolderState,
    Project,
    ReleaseResult,
)
from src.allocator.models.base import utc_now


class FakeAllocationStore:
    """Shared committed state seen by every fake session."""

    def __init__(self) -> None:
        self.projects: dict[UUID, Project] = {}
        self.folders: dict[UUID, Folder] = {}
        self.audit_entries: list[FolderAuditEntry] = []

    def provision(self, capacity: int, number: int = 1, name: str | None = None) -> Project:
        project = Project(name=name or f"Project {number}", number=number, capacity=capacity)
        self.projects[project.id] = project
        for slot in range(1, capacity + 1):
            folder = Folder(project_id=project.id, slot=slot, tag=project.folder_tag(slot))
            self.folders[folder.id] = folder
        return project

    def folders_of(self, project_id: UUID) -> list[Folder]:
        return sorted(
            (f for f in self.folders.values() if f.project_id == project_id),
            key=lambda f: f.slot,
        )

    def entries(self, action: str | None = None) -> list[FolderAuditEntry]:
        return [e for e in self.audit_entries if action is None or e.action == action]


class FakeSession:
    """Transaction stand-in for one request."""

    def __init__(self, store: FakeAllocationStore) -> None:
        self.store = store
        self.staged: list[FolderAuditEntry] = []
        self.staged_projects: list[Project] = []
        self.staged_folders: list[Folder] = []
        self.undo: list[tuple[Folder, dict]] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_next_commit: Exception | None = None

    def remember(self, folder: Folder) -> None:
        self.undo.append(
            (
                folder,
                {
                    "state": folder.state,
                    "assigned_user_id": folder.assigned_user_id,
                    "assigned_at": folder.assigned_at,
                },
            )
        )

    async def flush(self) -> None:
        return None

    async def commit(self) -> None:
        if self.fail_next_commit is not None:
            error, self.fail_next_commit = self.fail_next_commit, None
            raise error
        for project in self.staged_projects:
            self.store.projects[project.id] = project
        for folder in self.staged_folders:
            self.store.folders[folder.id] = folder
        self.store.audit_entries.extend(self.staged)
        self.staged.clear()
        self.staged_projects.clear()
        self.staged_folders.clear()
        self.undo.clear()
        self.commits += 1

    async def rollback(self) -> None:
        for folder, values in reversed(self.undo):
            for key, value in values.items():
                setattr(folder, key, value)
        self.staged.clear()
        self.staged_projects.clear()
        self.staged_folders.clear()
        self.undo.clear()
        self.rollbacks += 1


class FakeProjectRepository:
    def __init__(self, store: FakeAllocationStore, session: FakeSession) -> None:
        self.store = store
        self.session = session

    async def get_by_id(self, id: UUID) -> Project | None:
        return self.store.projects.get(id)

    async def get_by_name(self, name: str) -> Project | None:
        return next((p for p in self.store.projects.values() if p.name == name), None)

    async def get_by_number(self, number: int) -> Project | None:
        return next((p for p in self.store.projects.values() if p.number == number), None)

    def add(self, project: Project) -> None:
        self.session.staged_projects.append(project)


class FakeFolderRepository:
    def __init__(self, store: FakeAllocationStore, session: FakeSession) -> None:
        self.store = store
        self.session = session

    async def get_by_id(self, id: UUID) -> Folder | None:
        return self.store.folders.get(id)

    def add(self, folder: Folder) -> None:
        self.session.staged_folders.append(folder)

    async def find_available(self, project_id: UUID, skip_locked: bool = True) -> Folder | None:
        available = [
            f for f in self.store.folders_of(project_id) if f.state == FolderState.AVAILABLE.value
        ]
        # Let concurrent claimants observe the same available folder
        await asyncio.sleep(0)
        return available[0] if available else None

    async def try_assign(self, folder_id: UUID, user_id: UUID) -> AssignResult:
        folder = self.store.folders[folder_id]
        if folder.state != FolderState.AVAILABLE.value:
            return AssignResult.CONFLICT
        if await self._holds_other(folder.project_id, user_id):
            raise IntegrityError(
                "UPDATE public.folders", {}, Exception("uq_folders_project_assigned_user")
            )
        self.session.remember(folder)
        folder.state = FolderState.ASSIGNED.value
        folder.assigned_user_id = user_id
        folder.assigned_at = utc_now()
        return AssignResult.ASSIGNED

    async def _holds_other(self, project_id: UUID, user_id: UUID) -> bool:
        return any(
            f.assigned_user_id == user_id and f.state == FolderState.ASSIGNED.value
            for f in self.store.folders_of(project_id)
        )

    async def release(
        self, folder_id: UUID, expected_user_id: UUID | None = None
    ) -> tuple[ReleaseResult, UUID | None]:
        folder = self.store.folders.get(folder_id)
        if folder is None or folder.state != FolderState.ASSIGNED.value:
            return ReleaseResult.NOT_ASSIGNED, None
        if expected_user_id is not None and folder.assigned_user_id != expected_user_id:
            return ReleaseResult.NOT_ASSIGNED, None
        previous = folder.assigned_user_id
        self.session.remember(folder)
        folder.state = FolderState.AVAILABLE.value
        folder.assigned_user_id = None
        folder.assigned_at = None
        return ReleaseResult.RELEASED, previous

    async def find_assignment(self, project_id: UUID, user_id: UUID) -> Folder | None:
        return next(
            (
                f
                for f in self.store.folders_of(project_id)
                if f.state == FolderState.ASSIGNED.value and f.assigned_user_id == user_id
            ),
            None,
        )

    async def list_by_project(
        self, project_id: UUID, state: FolderState | None = None
    ) -> list[Folder]:
        return [
            f
            for f in self.store.folders_of(project_id)
            if state is None or f.state == state.value
        ]

    async def list_assigned(self, project_id: UUID) -> list[Folder]:
        return await self.list_by_project(project_id, FolderState.ASSIGNED)

    async def count_by_state(self, project_id: UUID) -> dict[FolderState, int]:
        counts = dict.fromkeys(FolderState, 0)
        for folder in self.store.folders_of(project_id):
            counts[FolderState(folder.state)] += 1
        return counts


class FakeAuditRepository:
    def __init__(self, session: FakeSession) -> None:
        self.session = session

    def append(self, entry: FolderAuditEntry) -> None:
        self.session.staged.append(entry)


def build_allocator(store: FakeAllocationStore):  # type: ignore[no-untyped-def]
    """AllocatorService wired to the fake store with its own session."""
    from src.allocator.services import AllocatorService, FolderAuditService

    session = FakeSession(store)
    audit_service = FolderAuditService(FakeAuditRepository(session), session)  # type: ignore[arg-type]
    service = AllocatorService(
        FakeProjectRepository(store, session),  # type: ignore[arg-type]
        FakeFolderRepository(store, session),  # type: ignore[arg-type]
        audit_service,
        session,  # type: ignore[arg-type]
    )
    return service, session
