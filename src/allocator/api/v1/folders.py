"""Folder endpoints - operator release by folder id."""

from uuid import UUID

from fastapi import APIRouter

from src.allocator.api.dependencies import AdminPrincipal, AllocatorServiceDep
from src.allocator.api.v1.projects import release_read
from src.allocator.schemas import FolderRead, ReleaseRead

router = APIRouter(prefix="/folders", tags=["folders"])


@router.get(
    "/{folder_id}",
    response_model=FolderRead,
    summary="Get folder",
    responses={404: {"description": "Folder not found"}},
)
async def get_folder(
    folder_id: UUID,
    _admin: AdminPrincipal,
    service: AllocatorServiceDep,
) -> FolderRead:
    return FolderRead.model_validate(await service.get_folder(folder_id))


@router.post(
    "/{folder_id}/release",
    response_model=ReleaseRead,
    summary="Release folder",
    description=(
        "Return a folder to the pool, e.g. after the holder was removed. "
        "Releasing a free folder succeeds with result `not_assigned`."
    ),
    responses={
        404: {"description": "Folder not found"},
        503: {"description": "Allocation store unavailable, retry with backoff"},
    },
)
async def release_folder(
    folder_id: UUID,
    _admin: AdminPrincipal,
    service: AllocatorServiceDep,
) -> ReleaseRead:
    return release_read(await service.release(folder_id))
