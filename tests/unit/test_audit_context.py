"""Unit tests for the audit context and client address resolution."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from src.allocator.api.middlewares.request_context import _client_ip, get_client_ip
from src.allocator.core.audit_context import (
    AuditContext,
    bind_audit_actor,
    clear_audit_context,
    get_audit_context,
    set_audit_context,
)

pytestmark = pytest.mark.unit


class TestAuditContext:
    def test_audit_context_is_immutable(self):
        from dataclasses import FrozenInstanceError

        ctx = AuditContext(request_id="abc")
        with pytest.raises(FrozenInstanceError):
            ctx.request_id = "def"  # type: ignore[misc]

    def test_set_and_get_context(self):
        set_audit_context(request_id="abc-123")

        ctx = get_audit_context()
        assert ctx is not None
        assert ctx.request_id == "abc-123"
        assert ctx.actor_id is None

    def test_get_context_returns_none_when_not_set(self):
        assert get_audit_context() is None

    def test_clear_context(self):
        set_audit_context(request_id="abc-123")
        clear_audit_context()
        assert get_audit_context() is None


class TestBindAuditActor:
    def test_keeps_request_id(self):
        set_audit_context(request_id="req-1")
        actor = uuid4()

        bind_audit_actor(actor)

        assert get_audit_context() == AuditContext(request_id="req-1", actor_id=actor)

    def test_without_existing_context(self):
        actor = uuid4()

        bind_audit_actor(actor)

        assert get_audit_context() == AuditContext(actor_id=actor)


class TestGetClientIp:
    def test_returns_first_ip_from_forwarded_for(self):
        assert get_client_ip("1.2.3.4, 5.6.7.8, 9.10.11.12", "192.168.1.1") == "1.2.3.4"

    def test_strips_whitespace_from_forwarded_for(self):
        assert get_client_ip("  1.2.3.4  , 5.6.7.8", "192.168.1.1") == "1.2.3.4"

    def test_returns_client_host_when_no_forwarded_for(self):
        assert get_client_ip(None, "192.168.1.1") == "192.168.1.1"
        # Empty string is falsy, so returns client_host
        assert get_client_ip("", "192.168.1.1") == "192.168.1.1"

    def test_returns_none_when_both_are_none(self):
        assert get_client_ip(None, None) is None


class TestTrustedProxies:
    def _request(self, host: str, forwarded_for: str | None) -> SimpleNamespace:
        headers = {"x-forwarded-for": forwarded_for} if forwarded_for else {}
        return SimpleNamespace(client=SimpleNamespace(host=host), headers=headers)

    def test_forwarded_for_from_untrusted_peer_is_ignored(self):
        settings = MagicMock(trusted_proxy_ips=[])
        request = self._request("203.0.113.9", "1.2.3.4")

        with patch(
            "src.allocator.api.middlewares.request_context.get_settings", return_value=settings
        ):
            assert _client_ip(request) == "203.0.113.9"  # type: ignore[arg-type]

    def test_forwarded_for_from_trusted_proxy(self):
        settings = MagicMock(trusted_proxy_ips=["10.0.0.2"])
        request = self._request("10.0.0.2", "1.2.3.4, 10.0.0.2")

        with patch(
            "src.allocator.api.middlewares.request_context.get_settings", return_value=settings
        ):
            assert _client_ip(request) == "1.2.3.4"  # type: ignore[arg-type]
