"""Identity provider token handling.

The allocator never issues credentials for end users. It verifies bearer tokens
minted by the identity provider with a shared HS256 secret and reads the user
id from `sub` and roles from `roles`. `create_access_token` exists for local
development and tests.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from src.allocator.core.config import get_settings

DEFAULT_TOKEN_EXPIRE_MINUTES = 30


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as asserted by the identity provider."""

    user_id: UUID
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def create_access_token(
    subject: str | UUID,
    roles: list[str] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a token shaped like the identity provider's."""
    settings = get_settings()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=DEFAULT_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "exp": expire,
        "type": "access",
    }
    if roles:
        to_encode["roles"] = list(roles)
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT token. Returns None on any error."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None


def principal_from_payload(payload: dict[str, Any]) -> Principal | None:
    """Build a Principal from decoded claims, or None if they are malformed."""
    if payload.get("type", "access") != "access":
        return None

    try:
        user_id = UUID(str(payload.get("sub", "")))
    except ValueError:
        return None

    roles = payload.get("roles") or []
    if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
        return None

    return Principal(user_id=user_id, roles=frozenset(roles))
