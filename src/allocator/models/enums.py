"""Shared enums for models."""

from enum import Enum


class FolderState(str, Enum):
    """Folder assignment state. The only two states a folder can be in."""

    AVAILABLE = "available"
    ASSIGNED = "assigned"


class AuditAction(str, Enum):
    """Allocation decisions recorded in the audit log."""

    CLAIM = "claim"
    RELEASE = "release"


class AuditOutcome(str, Enum):
    """Result of an audited claim or release."""

    OK = "ok"
    NO_CAPACITY = "no_capacity"
    ALREADY_ASSIGNED = "already_assigned"
    NOT_ASSIGNED = "not_assigned"


class AssignResult(str, Enum):
    """Result of the store's conditional available -> assigned transition."""

    ASSIGNED = "assigned"
    CONFLICT = "conflict"


class ReleaseResult(str, Enum):
    """Result of the store's conditional assigned -> available transition."""

    RELEASED = "released"
    NOT_ASSIGNED = "not_assigned"
