from src.allocator.services.allocator_service import (
    AllocatorService,
    ClaimOutcome,
    ReleaseOutcome,
)
from src.allocator.services.audit_service import FolderAuditService
from src.allocator.services.provisioning_service import ProvisioningService
from src.allocator.services.reconciliation_service import PoolStats, ReconciliationService

__all__ = [
    "AllocatorService",
    "ClaimOutcome",
    "FolderAuditService",
    "PoolStats",
    "ProvisioningService",
    "ReconciliationService",
    "ReleaseOutcome",
]
