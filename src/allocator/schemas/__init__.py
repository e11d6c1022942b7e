from src.allocator.schemas.audit import AuditEntryListResponse, AuditEntryRead, HolderRead
from src.allocator.schemas.folder import (
    ClaimRead,
    FolderRead,
    ReconciliationRequest,
    ReconciliationResponse,
    ReleaseRead,
)
from src.allocator.schemas.pagination import PaginatedResponse
from src.allocator.schemas.project import PoolStatsRead, ProjectCreate, ProjectRead

__all__ = [
    # Audit
    "AuditEntryListResponse",
    "AuditEntryRead",
    "HolderRead",
    # Folder
    "ClaimRead",
    "FolderRead",
    "ReconciliationRequest",
    "ReconciliationResponse",
    "ReleaseRead",
    # Pagination
    "PaginatedResponse",
    # Project
    "PoolStatsRead",
    "ProjectCreate",
    "ProjectRead",
]
