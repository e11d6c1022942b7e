"""FastAPI dependency injection definitions."""

# Auth
from src.allocator.api.dependencies.auth import (
    AdminPrincipal,
    CurrentPrincipal,
    get_current_principal,
    require_admin_role,
)

# Database
from src.allocator.api.dependencies.db import DBSession, get_db_session

# Repositories
from src.allocator.api.dependencies.repositories import (
    FolderAuditRepo,
    FolderRepo,
    ProjectRepo,
    get_folder_audit_repository,
    get_folder_repository,
    get_project_repository,
)

# Services
from src.allocator.api.dependencies.services import (
    AllocatorServiceDep,
    FolderAuditServiceDep,
    ProvisioningServiceDep,
    ReconciliationServiceDep,
    get_allocator_service,
    get_folder_audit_service,
    get_provisioning_service,
    get_reconciliation_service,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "AdminPrincipal",
    "CurrentPrincipal",
    "get_current_principal",
    "require_admin_role",
    # Repositories
    "FolderAuditRepo",
    "FolderRepo",
    "ProjectRepo",
    "get_folder_audit_repository",
    "get_folder_repository",
    "get_project_repository",
    # Services
    "AllocatorServiceDep",
    "FolderAuditServiceDep",
    "ProvisioningServiceDep",
    "ReconciliationServiceDep",
    "get_allocator_service",
    "get_folder_audit_service",
    "get_provisioning_service",
    "get_reconciliation_service",
]
