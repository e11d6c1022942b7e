"""Model exports.

Import from here: `from src.allocator.models import Folder, Project`
"""

from src.allocator.models.audit import FolderAuditEntry
from src.allocator.models.enums import (
    AssignResult,
    AuditAction,
    AuditOutcome,
    FolderState,
    ReleaseResult,
)
from src.allocator.models.folder import Folder
from src.allocator.models.project import Project

__all__ = [
    # Enums
    "AssignResult",
    "AuditAction",
    "AuditOutcome",
    "FolderState",
    "ReleaseResult",
    # Models
    "Folder",
    "FolderAuditEntry",
    "Project",
]
