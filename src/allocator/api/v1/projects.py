"""Project endpoints - provisioning, claims and assignment lookup."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from src.allocator.api.dependencies import (
    AdminPrincipal,
    AllocatorServiceDep,
    CurrentPrincipal,
    ProvisioningServiceDep,
    ReconciliationServiceDep,
)
from src.allocator.core.config import get_settings
from src.allocator.core.rate_limit import get_claim_rate_limit_key, limiter
from src.allocator.models import FolderState
from src.allocator.schemas import (
    ClaimRead,
    FolderRead,
    PaginatedResponse,
    PoolStatsRead,
    ProjectCreate,
    ProjectRead,
    ReconciliationRequest,
    ReconciliationResponse,
    ReleaseRead,
)
from src.allocator.services import ClaimOutcome, ReleaseOutcome

router = APIRouter(prefix="/projects", tags=["projects"])

_UNAVAILABLE = {503: {"description": "Allocation store unavailable, retry with backoff"}}


def _claim_read(outcome: ClaimOutcome) -> ClaimRead:
    folder = outcome.folder
    return ClaimRead(
        folder_id=folder.id,
        project_id=folder.project_id,
        tag=folder.tag,
        assigned_at=folder.assigned_at,
        created=outcome.created,
    )


def release_read(outcome: ReleaseOutcome) -> ReleaseRead:
    return ReleaseRead(
        folder_id=outcome.folder.id,
        tag=outcome.folder.tag,
        result=outcome.result,
        previous_user_id=outcome.previous_user_id,
    )


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Provision project",
    description="Create a project and its pool of available folders. Admin only.",
    responses={
        201: {"description": "Project and folders created"},
        409: {"description": "Project name or number already exists"},
    },
)
async def provision_project(
    data: ProjectCreate,
    _admin: AdminPrincipal,
    service: ProvisioningServiceDep,
) -> ProjectRead:
    try:
        project = await service.provision_project(data.name, data.number, data.capacity)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    return ProjectRead.model_validate(project)


@router.get(
    "",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects",
    description="List all projects with cursor-based pagination. Admin only.",
)
async def list_projects(
    _admin: AdminPrincipal,
    service: ProvisioningServiceDep,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Max items to return")] = 50,
) -> PaginatedResponse[ProjectRead]:
    projects, next_cursor, has_more = await service.list_projects(cursor=cursor, limit=limit)
    return PaginatedResponse(
        items=[ProjectRead.model_validate(p) for p in projects],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/{project_id}",
    response_model=ProjectRead,
    summary="Get project",
    responses={404: {"description": "Project not found"}},
)
async def get_project(
    project_id: UUID,
    _principal: CurrentPrincipal,
    service: ProvisioningServiceDep,
) -> ProjectRead:
    return ProjectRead.model_validate(await service.get_project(project_id))


@router.get(
    "/{project_id}/stats",
    response_model=PoolStatsRead,
    summary="Folder pool statistics",
    responses={404: {"description": "Project not found"}},
)
async def get_pool_stats(
    project_id: UUID,
    _admin: AdminPrincipal,
    service: ReconciliationServiceDep,
) -> PoolStatsRead:
    return PoolStatsRead.model_validate(await service.pool_stats(project_id))


@router.get(
    "/{project_id}/folders",
    response_model=list[FolderRead],
    summary="List folders",
    description="List a project's folders in slot order. Admin only.",
    responses={404: {"description": "Project not found"}},
)
async def list_folders(
    project_id: UUID,
    _admin: AdminPrincipal,
    service: ReconciliationServiceDep,
    state: Annotated[FolderState | None, Query(description="Filter by state")] = None,
) -> list[FolderRead]:
    folders = await service.list_folders(project_id, state)
    return [FolderRead.model_validate(f) for f in folders]


@router.post(
    "/{project_id}/claims",
    response_model=ClaimRead,
    status_code=status.HTTP_201_CREATED,
    summary="Claim a folder",
    description=(
        "Bind the caller to one available folder. Idempotent: a caller that "
        "already holds a folder gets it back with 200."
    ),
    responses={
        200: {"description": "Caller already held this folder"},
        201: {"description": "Folder claimed"},
        404: {"description": "Project not found"},
        409: {"description": "No available folders in the project"},
        **_UNAVAILABLE,
    },
)
@limiter.limit(get_settings().claim_rate_limit, key_func=get_claim_rate_limit_key)
async def claim_folder(
    request: Request,
    response: Response,
    project_id: UUID,
    principal: CurrentPrincipal,
    service: AllocatorServiceDep,
) -> ClaimRead:
    outcome = await service.claim(project_id, principal.user_id)
    if not outcome.created:
        response.status_code = status.HTTP_200_OK
    return _claim_read(outcome)


@router.get(
    "/{project_id}/assignment",
    response_model=FolderRead,
    summary="Get the caller's folder",
    responses={404: {"description": "Caller holds no folder in the project"}, **_UNAVAILABLE},
)
async def get_assignment(
    project_id: UUID,
    principal: CurrentPrincipal,
    service: AllocatorServiceDep,
) -> FolderRead:
    folder = await service.lookup_assignment(project_id, principal.user_id)
    return FolderRead.model_validate(folder)


@router.delete(
    "/{project_id}/assignment",
    response_model=ReleaseRead,
    summary="Release the caller's folder",
    responses={404: {"description": "Caller holds no folder in the project"}, **_UNAVAILABLE},
)
async def release_assignment(
    project_id: UUID,
    principal: CurrentPrincipal,
    service: AllocatorServiceDep,
) -> ReleaseRead:
    return release_read(await service.release_for_user(project_id, principal.user_id))


@router.post(
    "/{project_id}/reconciliation",
    response_model=ReconciliationResponse,
    summary="Find orphaned assignments",
    description=(
        "Report assigned folders whose holder is not in `active_user_ids`. "
        "Nothing is released; use the folder release endpoint for that."
    ),
    responses={404: {"description": "Project not found"}},
)
async def reconcile_project(
    project_id: UUID,
    data: ReconciliationRequest,
    _admin: AdminPrincipal,
    service: ReconciliationServiceDep,
) -> ReconciliationResponse:
    orphans = await service.find_orphaned_assignments(project_id, data.active_user_ids)
    return ReconciliationResponse(
        project_id=project_id,
        orphaned=[FolderRead.model_validate(f) for f in orphans],
    )
