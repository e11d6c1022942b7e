"""Tests for ReconciliationService."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from src.allocator.core.errors import ProjectNotFoundError
from src.allocator.models import FolderState
from src.allocator.services import PoolStats, ReconciliationService
from tests.fakes import (
    FakeAllocationStore,
    FakeFolderRepository,
    FakeProjectRepository,
    FakeSession,
    build_allocator,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def store() -> FakeAllocationStore:
    return FakeAllocationStore()


@pytest.fixture
def audit_service() -> MagicMock:
    service = MagicMock()
    service.holder_at = AsyncMock(return_value=None)
    return service


@pytest.fixture
def service(store: FakeAllocationStore, audit_service: MagicMock) -> ReconciliationService:
    session = FakeSession(store)
    return ReconciliationService(
        FakeProjectRepository(store, session),  # type: ignore[arg-type]
        FakeFolderRepository(store, session),  # type: ignore[arg-type]
        audit_service,
    )


class TestPoolStats:
    async def test_counts_by_state(self, service, store):
        project = store.provision(capacity=4)
        allocator, _ = build_allocator(store)
        await allocator.claim(project.id, uuid4())

        stats = await service.pool_stats(project.id)

        assert stats == PoolStats(project_id=project.id, total=4, available=3, assigned=1)
        assert stats.utilization_percent == 25.0

    async def test_unknown_project(self, service):
        with pytest.raises(ProjectNotFoundError):
            await service.pool_stats(uuid4())

    def test_utilization_rounding(self):
        stats = PoolStats(project_id=uuid4(), total=3, available=2, assigned=1)

        assert stats.utilization_percent == 33.33

    def test_utilization_of_empty_pool(self):
        assert PoolStats(project_id=uuid4(), total=0, available=0, assigned=0).utilization_percent == 0.0


class TestListFolders:
    async def test_filter_by_state(self, service, store):
        project = store.provision(capacity=3)
        allocator, _ = build_allocator(store)
        claimed = await allocator.claim(project.id, uuid4())

        assigned = await service.list_folders(project.id, FolderState.ASSIGNED)
        available = await service.list_folders(project.id, FolderState.AVAILABLE)
        every = await service.list_folders(project.id)

        assert [f.id for f in assigned] == [claimed.folder.id]
        assert [f.slot for f in available] == [2, 3]
        assert len(every) == 3


class TestFindOrphanedAssignments:
    async def test_reports_holders_not_in_active_set(self, service, store):
        project = store.provision(capacity=3)
        allocator, _ = build_allocator(store)
        active, departed = uuid4(), uuid4()
        await allocator.claim(project.id, active)
        orphan = (await allocator.claim(project.id, departed)).folder

        orphans = await service.find_orphaned_assignments(project.id, [active])

        assert [f.id for f in orphans] == [orphan.id]

    async def test_never_releases(self, service, store):
        project = store.provision(capacity=1)
        allocator, _ = build_allocator(store)
        folder = (await allocator.claim(project.id, uuid4())).folder

        await service.find_orphaned_assignments(project.id, [])

        assert store.folders[folder.id].is_assigned

    async def test_no_orphans(self, service, store):
        project = store.provision(capacity=2)

        assert await service.find_orphaned_assignments(project.id, [uuid4()]) == []


async def test_holder_at_delegates_to_audit(service, audit_service):
    folder_id, holder = uuid4(), uuid4()
    at = datetime(2025, 6, 1, 12, 0)
    audit_service.holder_at.return_value = holder

    assert await service.holder_at(folder_id, at) == holder
    audit_service.holder_at.assert_awaited_once_with(folder_id, at)
