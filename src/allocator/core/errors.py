"""Domain errors raised by the allocation services.

Each error carries the HTTP status it maps to at the API edge, so routes do not
need their own try/except ladders.
"""

from uuid import UUID


class AllocatorError(Exception):
    """Base class for allocation errors surfaced to callers."""

    status_code: int = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ProjectNotFoundError(AllocatorError):
    status_code = 404

    def __init__(self, project_id: UUID):
        super().__init__(f"Project {project_id} not found")
        self.project_id = project_id


class FolderNotFoundError(AllocatorError):
    status_code = 404

    def __init__(self, folder_id: UUID):
        super().__init__(f"Folder {folder_id} not found")
        self.folder_id = folder_id


class AssignmentNotFoundError(AllocatorError):
    status_code = 404

    def __init__(self, project_id: UUID, user_id: UUID):
        super().__init__(f"User {user_id} holds no folder in project {project_id}")
        self.project_id = project_id
        self.user_id = user_id


class ProjectExistsError(AllocatorError):
    status_code = 409


class NoCapacityError(AllocatorError):
    """Every folder in the project is assigned. Expected under load."""

    status_code = 409

    def __init__(self, project_id: UUID):
        super().__init__(f"No available folders in project {project_id}")
        self.project_id = project_id


class StoreUnavailableError(AllocatorError):
    """The allocation store could not be reached. Safe to retry with backoff."""

    status_code = 503
    retry_after_seconds = 1

    def __init__(self, detail: str = "Allocation store unavailable"):
        super().__init__(detail)
