"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.allocator.api.dependencies.db import DBSession
from src.allocator.repositories import (
    FolderAuditRepository,
    FolderRepository,
    ProjectRepository,
)


def get_project_repository(session: DBSession) -> ProjectRepository:
    return ProjectRepository(session)


def get_folder_repository(session: DBSession) -> FolderRepository:
    return FolderRepository(session)


def get_folder_audit_repository(session: DBSession) -> FolderAuditRepository:
    return FolderAuditRepository(session)


ProjectRepo = Annotated[ProjectRepository, Depends(get_project_repository)]
FolderRepo = Annotated[FolderRepository, Depends(get_folder_repository)]
FolderAuditRepo = Annotated[FolderAuditRepository, Depends(get_folder_audit_repository)]
