"""Security utilities - identity provider token verification."""

from src.allocator.core.security.crypto import (
    Principal,
    create_access_token,
    decode_token,
    principal_from_payload,
)

__all__ = [
    "Principal",
    "create_access_token",
    "decode_token",
    "principal_from_payload",
]
