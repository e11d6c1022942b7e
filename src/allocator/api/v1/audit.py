"""Folder audit endpoints - admin only, for reconciliation tooling."""

from datetime import UTC, datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.allocator.api.dependencies import AdminPrincipal, FolderAuditServiceDep
from src.allocator.models import AuditAction
from src.allocator.schemas import AuditEntryListResponse, AuditEntryRead, HolderRead

router = APIRouter(prefix="/audit", tags=["audit"])

# Query parameter types
CursorQuery = Annotated[str | None, Query(description="Pagination cursor")]
LimitQuery = Annotated[int, Query(ge=1, le=100, description="Items per page")]
ActionQuery = Annotated[AuditAction | None, Query(description="Filter by action")]
ProjectIdQuery = Annotated[UUID | None, Query(description="Filter by project ID")]
FolderIdQuery = Annotated[UUID | None, Query(description="Filter by folder ID")]
UserIdQuery = Annotated[UUID | None, Query(description="Filter by holder user ID")]


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


@router.get(
    "/entries",
    response_model=AuditEntryListResponse,
    responses={
        200: {
            "description": "Claim and release decisions, newest first",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "550e8400-e29b-41d4-a716-446655440000",
                                "project_id": "550e8400-e29b-41d4-a716-446655440001",
                                "folder_id": "550e8400-e29b-41d4-a716-446655440002",
                                "user_id": "550e8400-e29b-41d4-a716-446655440003",
                                "actor_id": "550e8400-e29b-41d4-a716-446655440003",
                                "action": "claim",
                                "outcome": "ok",
                                "request_id": "abc-123",
                                "created_at": "2025-01-01T00:00:00",
                            }
                        ],
                        "next_cursor": "abc123",
                        "has_more": True,
                    }
                }
            },
        },
        403: {"description": "Admin access required"},
    },
)
async def list_audit_entries(
    _: AdminPrincipal,
    audit_service: FolderAuditServiceDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = 50,
    action: ActionQuery = None,
    project_id: ProjectIdQuery = None,
    folder_id: FolderIdQuery = None,
    user_id: UserIdQuery = None,
) -> AuditEntryListResponse:
    """List folder audit entries.

    Requires admin role. Returns paginated results.
    """
    entries, next_cursor, has_more = await audit_service.list_entries(
        project_id=project_id,
        folder_id=folder_id,
        user_id=user_id,
        action=action,
        cursor=cursor,
        limit=limit,
    )

    return AuditEntryListResponse(
        items=[AuditEntryRead.model_validate(entry) for entry in entries],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/folders/{folder_id}/holder",
    response_model=HolderRead,
    responses={403: {"description": "Admin access required"}},
)
async def get_folder_holder(
    folder_id: UUID,
    at: Annotated[datetime, Query(description="Instant to look up (ISO 8601, UTC if naive)")],
    _: AdminPrincipal,
    audit_service: FolderAuditServiceDep,
) -> HolderRead:
    """Who held a folder at an instant, reconstructed from the audit trail."""
    at = _as_naive_utc(at)
    return HolderRead(
        folder_id=folder_id,
        at=at,
        user_id=await audit_service.holder_at(folder_id, at),
    )
