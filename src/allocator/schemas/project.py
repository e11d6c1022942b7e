"""Project schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

MAX_PROJECT_CAPACITY = 500


class ProjectCreate(BaseModel):
    """Schema for provisioning a project and its folder pool."""

    name: str = Field(min_length=1, max_length=200)
    number: int = Field(ge=1, description="Project number used in folder tags (FOLDER-P01-U1)")
    capacity: int = Field(ge=1, le=MAX_PROJECT_CAPACITY)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be empty or whitespace only")
        return v


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    id: UUID
    number: int
    name: str
    capacity: int
    created_at: datetime

    model_config = {"from_attributes": True}


class PoolStatsRead(BaseModel):
    """Folder pool usage of a project."""

    project_id: UUID
    total: int
    available: int
    assigned: int
    utilization_percent: float

    model_config = {"from_attributes": True}
