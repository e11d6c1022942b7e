"""Service factory dependencies.

Every repository and service of a request shares the request's session, so a
folder state change and its audit entry commit together.
"""

from typing import Annotated

from fastapi import Depends

from src.allocator.api.dependencies.db import DBSession
from src.allocator.api.dependencies.repositories import (
    FolderAuditRepo,
    FolderRepo,
    ProjectRepo,
)
from src.allocator.services import (
    AllocatorService,
    FolderAuditService,
    ProvisioningService,
    ReconciliationService,
)


def get_folder_audit_service(audit_repo: FolderAuditRepo, session: DBSession) -> FolderAuditService:
    return FolderAuditService(audit_repo, session)


FolderAuditServiceDep = Annotated[FolderAuditService, Depends(get_folder_audit_service)]


def get_allocator_service(
    project_repo: ProjectRepo,
    folder_repo: FolderRepo,
    audit_service: FolderAuditServiceDep,
    session: DBSession,
) -> AllocatorService:
    return AllocatorService(project_repo, folder_repo, audit_service, session)


def get_provisioning_service(
    project_repo: ProjectRepo,
    folder_repo: FolderRepo,
    session: DBSession,
) -> ProvisioningService:
    return ProvisioningService(project_repo, folder_repo, session)


def get_reconciliation_service(
    project_repo: ProjectRepo,
    folder_repo: FolderRepo,
    audit_service: FolderAuditServiceDep,
) -> ReconciliationService:
    return ReconciliationService(project_repo, folder_repo, audit_service)


AllocatorServiceDep = Annotated[AllocatorService, Depends(get_allocator_service)]
ProvisioningServiceDep = Annotated[ProvisioningService, Depends(get_provisioning_service)]
ReconciliationServiceDep = Annotated[ReconciliationService, Depends(get_reconciliation_service)]
