"""Wiring of the client components around one credential store."""

import httpx

from .clients.http import AuthenticatedClient
from .clients.sharefare import ShareFareClient
from .config import Settings
from .db import Database
from .navigation import HOME_ROUTE, LOGIN_ROUTE, Router
from .service import LedgerService
from .session import SessionGuard
from .store import open_stores


class ClientContext:
    """Everything a front end needs, sharing a single credential store.

    Lifecycle: created at app start; the stored credential outlives it and
    is only removed by logout or invalidation.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Open local storage and build the client stack."""
        self.settings = settings
        self.db = Database(settings.database_path)
        self.credentials, self.preferences = open_stores(
            self.db, settings.key_path, settings.encryption_key
        )
        self.router = Router(
            HOME_ROUTE if self.credentials.get() is not None else LOGIN_ROUTE
        )
        self.http = AuthenticatedClient(
            settings.api_base_url,
            self.credentials,
            self.router,
            timeout=settings.request_timeout,
            transport=transport,
        )
        self.guard = SessionGuard(
            self.credentials, self.http.client, settings.session_timeout_ms
        )
        self.api = ShareFareClient(self.http)
        self.ledger = LedgerService(self.api)

    async def aclose(self):
        """Close network and database handles."""
        await self.http.aclose()
        self.db.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()
