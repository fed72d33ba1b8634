"""Authenticated HTTP client for the ShareFare API."""

import logging
from typing import Any

import httpx

from ..navigation import Router
from ..store import CredentialStore
from .auth import build_auth_header

logger = logging.getLogger(__name__)

# Statuses meaning "the presented credential is invalid or missing".
AUTH_REJECTION_STATUSES = frozenset({400, 401})


def is_auth_rejection(response: httpx.Response) -> bool:
    """True when the response rejects the presented credential."""
    return response.status_code in AUTH_REJECTION_STATUSES


class AuthenticatedClient:
    """Wraps outbound calls, attaching the stored credential to each one.

    ``request`` returns ``None`` whenever the call could not be made or was
    rejected for authentication reasons. In both cases the credential has
    been cleared and the router sent to login; callers must not read a body
    or report an error. Transport failures are raised unchanged.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStore,
        router: Router,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client."""
        self.credentials = credentials
        self.router = router
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    def invalidate_session(self):
        """Clear the credential and go to login. Safe to repeat."""
        self.credentials.clear()
        self.router.to_login()

    def build_headers(
        self, auth_header: str, headers: dict[str, str] | None = None
    ) -> httpx.Headers:
        """Merge caller headers with the JSON default and the authorization header."""
        merged = httpx.Headers({"Content-Type": "application/json"})
        if headers:
            merged.update(headers)
        merged["Authorization"] = auth_header
        return merged

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response | None:
        """
        Send an authenticated request.

        Args:
            method: HTTP method
            url: Path relative to the API base URL, or an absolute URL
            headers: Extra headers; ``Content-Type`` may be overridden,
                ``Authorization`` may not
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Returns:
            The response, or None if there was no usable credential or the
            server rejected it
        """
        auth_header = build_auth_header(self.credentials.get())
        if not auth_header:
            logger.info(f"No credential for {method} {url}; redirecting to login")
            self.invalidate_session()
            return None

        response = await self.client.request(
            method, url, headers=self.build_headers(auth_header, headers), **kwargs
        )

        if is_auth_rejection(response):
            logger.info(
                f"{method} {url} rejected with {response.status_code}; "
                "clearing session"
            )
            self.invalidate_session()
            return None

        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response | None:
        """Authenticated GET."""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response | None:
        """Authenticated POST."""
        return await self.request("POST", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response | None:
        """Authenticated PATCH."""
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response | None:
        """Authenticated DELETE."""
        return await self.request("DELETE", url, **kwargs)

    async def send_public(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request without a credential (login, signup)."""
        return await self.client.request(
            method, url, headers={"Content-Type": "application/json"}, **kwargs
        )

    async def send_with_credential(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """
        Send a request carrying the stored credential, without the rejection
        side effect.

        Email verification answers a wrong code with a 4xx, which must not
        end the session.
        """
        auth_header = build_auth_header(self.credentials.get())
        headers = httpx.Headers({"Content-Type": "application/json"})
        if auth_header:
            headers["Authorization"] = auth_header
        return await self.client.request(method, url, headers=headers, **kwargs)
