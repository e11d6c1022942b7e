"""Repository layer - data access abstraction."""

from src.allocator.repositories.audit import FolderAuditRepository
from src.allocator.repositories.base import BaseRepository
from src.allocator.repositories.folder import FolderRepository
from src.allocator.repositories.project import ProjectRepository

__all__ = [
    "BaseRepository",
    "FolderAuditRepository",
    "FolderRepository",
    "ProjectRepository",
]
