"""Authentication and authorization dependencies.

Callers present a bearer token from the identity provider. No user table is
consulted: the token's `sub` is the user id the allocator binds folders to.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from src.allocator.core.audit_context import bind_audit_actor
from src.allocator.core.config import get_settings
from src.allocator.core.logging import bind_user_context
from src.allocator.core.security import Principal, decode_token, principal_from_payload


async def get_current_principal(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """Validate the bearer token and return the caller.

    Also binds the caller to log lines and audit entries, and stores it on
    request.state for the per-user claim rate limit.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(authorization[7:])
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    principal = principal_from_payload(payload)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.principal = principal
    bind_user_context(principal.user_id, principal.roles)
    bind_audit_actor(principal.user_id)
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def require_admin_role(principal: CurrentPrincipal) -> Principal:
    """Require the operator role for provisioning and reconciliation endpoints."""
    if not principal.has_role(get_settings().admin_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required for this operation",
        )
    return principal


AdminPrincipal = Annotated[Principal, Depends(require_admin_role)]
