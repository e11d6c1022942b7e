"""Append-only audit trail of claim and release decisions."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from src.allocator.models.base import utc_now


class FolderAuditEntry(SQLModel, table=True):
    """One claim or release decision.

    Rows are inserted and never updated or deleted. Together they answer "who
    held which folder when" independently of the folders table, which only
    knows the current holder.
    """

    __tablename__ = "folder_audit_entries"
    __table_args__ = (
        Index("ix_folder_audit_project_created", "project_id", "created_at"),
        Index("ix_folder_audit_folder_created", "folder_id", "created_at"),
        Index("ix_folder_audit_user_created", "user_id", "created_at"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    project_id: UUID = Field(foreign_key="public.projects.id")
    folder_id: UUID | None = Field(default=None, foreign_key="public.folders.id")  # None on no_capacity
    user_id: UUID | None = Field(default=None)  # Holder; None when releasing a free folder

    action: str = Field(max_length=20)  # AuditAction value
    outcome: str = Field(max_length=20)  # AuditOutcome value

    # Request metadata
    actor_id: UUID | None = Field(default=None)  # Authenticated caller, if any
    request_id: str | None = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
