"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectFactory, FolderFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.project import FolderAuditEntryFactory, FolderFactory, ProjectFactory

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # Allocation
    "FolderAuditEntryFactory",
    "FolderFactory",
    "ProjectFactory",
]
