"""Audit context management using contextvars.

Stores request metadata for use by FolderAuditService. The request id comes
from the correlation middleware; the actor is filled in once the bearer token
has been validated.
"""

from contextvars import ContextVar
from dataclasses import dataclass, replace
from uuid import UUID

_audit_context: ContextVar["AuditContext | None"] = ContextVar("audit_context", default=None)


@dataclass(frozen=True)
class AuditContext:
    """Immutable audit context for the current request."""

    request_id: str | None = None
    actor_id: UUID | None = None


def set_audit_context(request_id: str | None = None, actor_id: UUID | None = None) -> None:
    """Set audit context for the current request."""
    _audit_context.set(AuditContext(request_id=request_id, actor_id=actor_id))


def bind_audit_actor(actor_id: UUID) -> None:
    """Record the authenticated caller on the current audit context."""
    ctx = _audit_context.get() or AuditContext()
    _audit_context.set(replace(ctx, actor_id=actor_id))


def get_audit_context() -> AuditContext | None:
    return _audit_context.get()


def clear_audit_context() -> None:
    _audit_context.set(None)
