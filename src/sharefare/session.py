"""Live validation of the stored credential."""

import asyncio
import logging

import httpx

from .clients.auth import build_auth_header
from .clients.http import is_auth_rejection
from .store import CredentialStore

logger = logging.getLogger(__name__)

IDENTITY_PATH = "/api/me"
DEFAULT_TIMEOUT_MS = 5000


class SessionGuard:
    """Checks whether the stored credential is still accepted by the server.

    The check is pessimistic: anything other than a timely 2xx from the
    identity endpoint clears the credential and reports the session invalid.
    Results are never cached.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        client: httpx.AsyncClient,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ):
        """Initialize the guard with the store and an HTTP client to probe with."""
        self.credentials = credentials
        self.client = client
        self.default_timeout_ms = default_timeout_ms

    async def _probe(self, auth_header: str) -> httpx.Response:
        return await self.client.get(
            IDENTITY_PATH,
            headers={
                "Content-Type": "application/json",
                "Authorization": auth_header,
            },
        )

    def _invalidate(self, reason: str) -> bool:
        logger.info(f"Session invalid ({reason}); clearing credential")
        self.credentials.clear()
        return False

    async def validate(self, timeout_ms: int | None = None) -> bool:
        """
        Probe the identity endpoint with the stored credential.

        Args:
            timeout_ms: Upper bound for the probe; the in-flight request is
                cancelled when it elapses

        Returns:
            True only if the server accepted the credential in time
        """
        token = self.credentials.get()
        if token is None:
            logger.debug("No stored credential; session invalid")
            return False

        auth_header = build_auth_header(token)
        if not auth_header:
            return self._invalidate("blank credential")

        timeout_ms = timeout_ms if timeout_ms is not None else self.default_timeout_ms
        logger.debug(f"Probing {IDENTITY_PATH} (timeout {timeout_ms}ms)")

        try:
            # wait_for cancels the probe task when the timer wins.
            response = await asyncio.wait_for(
                self._probe(auth_header), timeout=timeout_ms / 1000
            )
        except TimeoutError:
            return self._invalidate(f"probe exceeded {timeout_ms}ms")
        except httpx.HTTPError as e:
            return self._invalidate(f"probe failed: {e.__class__.__name__}")

        if is_auth_rejection(response):
            return self._invalidate(f"rejected with {response.status_code}")

        if response.is_success:
            return True

        return self._invalidate(f"unexpected status {response.status_code}")
