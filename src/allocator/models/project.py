"""Project model - a tenant grouping with a fixed pool of folders."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from src.allocator.models.base import utc_now


class Project(SQLModel, table=True):
    """Project registry.

    Capacity is fixed at provisioning time and never changed by the allocator.
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_projects_capacity_positive"),
        CheckConstraint("number > 0", name="ck_projects_number_positive"),
        {"schema": "public"},
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    number: int = Field(unique=True, index=True)
    name: str = Field(max_length=200, unique=True, index=True)
    capacity: int
    created_at: datetime = Field(default_factory=utc_now, index=True)

    def folder_tag(self, slot: int) -> str:
        """Name the workflow engine knows a slot by, e.g. FOLDER-P01-U3."""
        return f"FOLDER-P{self.number:02d}-U{slot}"
