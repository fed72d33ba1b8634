"""Tests for SessionGuard."""

import asyncio

import httpx
import pytest

from sharefare.session import SessionGuard

BASE_URL = "https://api.test"


def run_validate(credentials, handler, timeout_ms=1000) -> bool:
    """Run one validation against a mocked identity endpoint."""

    async def run():
        async with httpx.AsyncClient(
            base_url=BASE_URL, transport=httpx.MockTransport(handler)
        ) as client:
            return await SessionGuard(credentials, client).validate(timeout_ms)

    return asyncio.run(run())


class TestSessionGuardValidate:
    """Tests for SessionGuard.validate."""

    def test_no_credential_skips_network(self, credentials):
        """Should return False without probing."""
        calls = []
        assert run_validate(credentials, lambda r: calls.append(r)) is False
        assert calls == []

    def test_accepted_credential(self, credentials):
        """Should return True and keep the token on 2xx."""
        credentials.set("tok")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"data": {"id": 1}})

        assert run_validate(credentials, handler) is True
        assert seen == {"path": "/api/me", "auth": "Bearer tok"}
        assert credentials.get() == "tok"

    @pytest.mark.parametrize("status", [400, 401])
    def test_rejected_credential(self, credentials, status):
        """Should clear the token on an auth rejection."""
        credentials.set("tok")
        assert run_validate(credentials, lambda r: httpx.Response(status)) is False
        assert credentials.get() is None

    @pytest.mark.parametrize("status", [403, 404, 500, 503])
    def test_other_error_status_fails_closed(self, credentials, status):
        """Should treat any other error status as invalid."""
        credentials.set("tok")
        assert run_validate(credentials, lambda r: httpx.Response(status)) is False
        assert credentials.get() is None

    def test_network_failure_fails_closed(self, credentials):
        """Should treat transport errors as invalid."""
        credentials.set("tok")

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        assert run_validate(credentials, handler) is False
        assert credentials.get() is None

    def test_timeout_cancels_probe(self, credentials):
        """Should cancel the in-flight probe and clear the token."""
        credentials.set("tok")
        cancelled = []

        async def handler(request: httpx.Request) -> httpx.Response:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise
            return httpx.Response(200)

        assert run_validate(credentials, handler, timeout_ms=50) is False
        assert cancelled == [True]
        assert credentials.get() is None

    def test_blank_credential_cleared_without_probe(self, credentials):
        """Should clear a credential that normalises to nothing."""
        credentials.set('  ""  ')
        calls = []
        assert run_validate(credentials, lambda r: calls.append(r)) is False
        assert calls == []
        assert credentials.get() is None

    def test_uses_default_timeout(self, credentials):
        """Should fall back to the configured default."""
        credentials.set("tok")

        async def run():
            async with httpx.AsyncClient(
                base_url=BASE_URL,
                transport=httpx.MockTransport(lambda r: httpx.Response(204)),
            ) as client:
                return await SessionGuard(
                    credentials, client, default_timeout_ms=500
                ).validate()

        assert asyncio.run(run()) is True
