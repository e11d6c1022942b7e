"""Folder audit schemas for API responses."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditEntryRead(BaseModel):
    """Audit entry for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    folder_id: UUID | None
    user_id: UUID | None
    actor_id: UUID | None
    action: str
    outcome: str
    request_id: str | None
    created_at: datetime


class AuditEntryListResponse(BaseModel):
    """Paginated audit entry response."""

    items: list[AuditEntryRead]
    next_cursor: str | None = Field(
        default=None,
        description="Opaque cursor for fetching the next page. None if no more pages.",
    )
    has_more: bool = Field(
        default=False,
        description="Whether there are more items after this page.",
    )


class HolderRead(BaseModel):
    """Who held a folder at an instant. `user_id` is None if it was free."""

    folder_id: UUID
    at: datetime
    user_id: UUID | None
