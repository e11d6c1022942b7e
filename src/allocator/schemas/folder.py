"""Folder, claim and release schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.allocator.models import FolderState, ReleaseResult


class FolderRead(BaseModel):
    """Schema for reading a folder slot."""

    id: UUID
    project_id: UUID
    slot: int
    tag: str
    state: FolderState
    assigned_user_id: UUID | None
    assigned_at: datetime | None

    model_config = {"from_attributes": True}


class ClaimRead(BaseModel):
    """Folder bound to the caller.

    The caller grants the user access to `tag` in the workflow engine.
    """

    folder_id: UUID
    project_id: UUID
    tag: str
    assigned_at: datetime | None
    created: bool = Field(description="False if the caller already held this folder")


class ReleaseRead(BaseModel):
    """Result of a release. `not_assigned` means the folder was already free."""

    folder_id: UUID
    tag: str
    result: ReleaseResult
    previous_user_id: UUID | None


class ReconciliationRequest(BaseModel):
    """Users the identity provider still knows about."""

    active_user_ids: list[UUID] = Field(default_factory=list, max_length=10000)


class ReconciliationResponse(BaseModel):
    project_id: UUID
    orphaned: list[FolderRead]
