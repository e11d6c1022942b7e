"""Folder model - one allocatable workspace slot."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

from src.allocator.models.base import utc_now
from src.allocator.models.enums import FolderState


class Folder(SQLModel, table=True):
    """Folder slot and its current assignment.

    The row is the assignment: a folder in state "assigned" carries its holder
    and assignment time, an available folder carries neither. The partial unique
    index gives each user at most one assigned folder per project.
    """

    __tablename__ = "folders"
    __table_args__ = (
        UniqueConstraint("project_id", "slot", name="uq_folders_project_slot"),
        UniqueConstraint("tag", name="uq_folders_tag"),
        CheckConstraint(
            "(state = 'assigned') = (assigned_user_id IS NOT NULL)",
            name="ck_folders_holder_matches_state",
        ),
        CheckConstraint("state IN ('available', 'assigned')", name="ck_folders_state"),
        Index(
            "uq_folders_project_assigned_user",
            "project_id",
            "assigned_user_id",
            unique=True,
            postgresql_where=text("state = 'assigned'"),
        ),
        Index("ix_folders_project_state_slot", "project_id", "state", "slot"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="public.projects.id", index=True)
    slot: int
    tag: str = Field(max_length=50)
    state: str = Field(default=FolderState.AVAILABLE.value, max_length=20)
    assigned_user_id: UUID | None = Field(default=None, index=True)
    assigned_at: datetime | None = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def state_enum(self) -> FolderState:
        """Get state as FolderState enum."""
        return FolderState(self.state)

    @property
    def is_assigned(self) -> bool:
        return self.state == FolderState.ASSIGNED.value
