"""Project provisioning service - creates a project and its folder pool."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.allocator.core.config import get_settings
from src.allocator.core.errors import ProjectExistsError, ProjectNotFoundError
from src.allocator.core.logging import get_logger
from src.allocator.models import Folder, Project
from src.allocator.repositories import FolderRepository, ProjectRepository

logger = get_logger(__name__)


class ProvisioningService:
    """Project provisioning - business logic only."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        folder_repo: FolderRepository,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.folder_repo = folder_repo
        self.session = session

    async def provision_project(self, name: str, number: int, capacity: int) -> Project:
        """Create a project with `capacity` available folders in one transaction.

        Folders get slots 1..capacity and tags like FOLDER-P01-U1, matching the
        folders created in the workflow engine. Capacity is fixed from here on.

        Args:
            name: Unique display name
            number: Unique project number used in folder tags
            capacity: Number of folder slots

        Returns:
            The committed project

        Raises:
            ValueError: If capacity or number is out of range
            ProjectExistsError: If the name or number is already taken
        """
        max_capacity = get_settings().max_project_capacity
        if not 1 <= capacity <= max_capacity:
            raise ValueError(f"Capacity must be between 1 and {max_capacity}")
        if number < 1:
            raise ValueError("Project number must be positive")

        if await self.project_repo.get_by_name(name):
            raise ProjectExistsError(f"Project with name '{name}' already exists")
        if await self.project_repo.get_by_number(number):
            raise ProjectExistsError(f"Project with number {number} already exists")

        # Unique constraints on name and number handle remaining races
        try:
            project = Project(name=name, number=number, capacity=capacity)
            self.project_repo.add(project)
            await self.session.flush()

            for slot in range(1, capacity + 1):
                self.folder_repo.add(
                    Folder(project_id=project.id, slot=slot, tag=project.folder_tag(slot))
                )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ProjectExistsError(f"Project '{name}' or number {number} already exists") from e

        logger.info(
            "Project provisioned",
            project_id=str(project.id),
            number=number,
            capacity=capacity,
        )
        return project

    async def get_project(self, project_id: UUID) -> Project:
        """Get a project by id.

        Raises:
            ProjectNotFoundError: Unknown project
        """
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def list_projects(
        self, cursor: str | None, limit: int
    ) -> tuple[list[Project], str | None, bool]:
        """List projects with cursor-based pagination, newest first."""
        return await self.project_repo.list_all(cursor, limit)
