"""ShareFare - client for a shared-expense ledger."""

__version__ = "0.1.0"

from .clients.http import AuthenticatedClient
from .clients.sharefare import ShareFareClient
from .config import Settings, load_settings
from .context import ClientContext
from .db import Database
from .models import Group, MemberBalance, Settlement, User
from .navigation import Router
from .reconciler import BalancePartition, partition_balances
from .service import LedgerService
from .session import SessionGuard
from .store import CredentialStore, PreferenceStore

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "CredentialStore",
    "PreferenceStore",
    "Router",
    "SessionGuard",
    "AuthenticatedClient",
    "ShareFareClient",
    "ClientContext",
    "Group",
    "MemberBalance",
    "Settlement",
    "User",
    "BalancePartition",
    "partition_balances",
    "LedgerService",
]
