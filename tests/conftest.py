"""Shared fixtures."""

from collections.abc import Callable

import httpx
import pytest
from cryptography.fernet import Fernet

from sharefare.clients.http import AuthenticatedClient
from sharefare.config import Settings
from sharefare.db import Database
from sharefare.navigation import HOME_ROUTE, Router
from sharefare.store import CredentialStore, PreferenceStore

BASE_URL = "https://api.test"


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a temporary database."""
    return Settings(
        api_base_url=BASE_URL,
        database_path=tmp_path / "sharefare.db",
        encryption_key=Fernet.generate_key().decode(),
    )


@pytest.fixture
def fernet(settings):
    """Cipher matching the settings key."""
    return Fernet(settings.encryption_key.encode())


@pytest.fixture
def db(settings):
    """Create a temporary database."""
    database = Database(settings.database_path)
    yield database
    database.close()


@pytest.fixture
def credentials(db, fernet):
    """Token store backed by the temporary database."""
    return CredentialStore(db, fernet)


@pytest.fixture
def preferences(db, fernet):
    """Preference store backed by the temporary database."""
    return PreferenceStore(db, fernet)


@pytest.fixture
def router():
    """Router starting inside the authenticated area."""
    return Router(HOME_ROUTE)


@pytest.fixture
def make_http(credentials, router) -> Callable[..., AuthenticatedClient]:
    """Build an AuthenticatedClient whose requests go to ``handler``."""

    def factory(handler) -> AuthenticatedClient:
        return AuthenticatedClient(
            BASE_URL,
            credentials,
            router,
            transport=httpx.MockTransport(handler),
        )

    return factory
