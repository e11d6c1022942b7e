"""Integration test fixtures for database and HTTP client operations.

These fixtures require a PostgreSQL database at DATABASE_URL; tests that use
them are skipped when it cannot be reached. Uses polyfactory for test data.
"""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.allocator.core import db
from src.allocator.core import redis as redis_core
from src.allocator.core.config import get_settings
from src.allocator.core.db import run_migrations_async
from src.allocator.main import create_app
from src.allocator.models import Folder, Project
from tests.factories import ProjectFactory


@pytest.fixture(autouse=True)
async def _reset_redis_between_tests() -> AsyncGenerator[None]:
    """Redis clients hold on to the event loop they were created in.

    pytest gives every test a fresh loop, so close and forget the client after
    each test.
    """
    redis_core.reset_redis_state()
    yield
    await redis_core.close_redis()


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        async with test_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OSError, DBAPIError) as e:
        await test_engine.dispose()
        pytest.skip(f"PostgreSQL not reachable: {e}")

    await run_migrations_async()

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Sessions configured like the application's, for concurrent-transaction tests."""
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    The session never commits on exit; tests call `await session.commit()`
    themselves, the same as the services do.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
async def make_project(engine: AsyncEngine) -> AsyncGenerator[Callable[..., object]]:
    """Persist projects with their folder pools; all are deleted after the test."""
    created: list[Project] = []

    async def _make(capacity: int = 2) -> tuple[Project, list[Folder]]:
        project, folders = ProjectFactory.with_folders(capacity=capacity)
        async with AsyncSession(engine, expire_on_commit=False) as session:
            session.add(project)
            await session.flush()
            session.add_all(folders)
            await session.commit()
        created.append(project)
        return project, folders

    yield _make

    async with engine.connect() as conn:
        for project in created:
            params = {"id": project.id}
            await conn.execute(
                text("DELETE FROM public.folder_audit_entries WHERE project_id = :id"), params
            )
            await conn.execute(text("DELETE FROM public.folders WHERE project_id = :id"), params)
            await conn.execute(text("DELETE FROM public.projects WHERE id = :id"), params)
        await conn.commit()


@pytest.fixture
async def project(make_project) -> tuple[Project, list[Folder]]:
    """A persisted project with two available folders."""
    return await make_project(capacity=2)


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client against the real application and database."""
    await db.dispose_engine()

    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    await db.dispose_engine()
