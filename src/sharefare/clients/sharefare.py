"""ShareFare API client."""

import logging
from typing import Any, Literal, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from ..exceptions import AuthenticationError, ServerError, VerificationCodeError
from ..models import (
    Dashboard,
    ExpenseDraft,
    Group,
    GroupSummary,
    NewGroupMember,
    Settlement,
    User,
    UserId,
)
from .errors import extract_error_message
from .http import AuthenticatedClient

logger = logging.getLogger(__name__)

LoginField = Literal["email", "login", "phone"]

M = TypeVar("M", bound=BaseModel)

# Statuses meaning "no invite for you here" rather than a failure.
INVITE_UNAVAILABLE_STATUSES = frozenset({403, 404})

VERIFICATION_CODE_LENGTH = 6


def _json(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, treating anything else as empty."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _raise_for_error(response: httpx.Response, action: str):
    """Raise ServerError with the server's own message for a non-2xx response."""
    if response.is_success:
        return
    message = extract_error_message(response)
    logger.error(f"Failed to {action}: {response.status_code} {message}")
    raise ServerError(message or f"Failed to {action}", response.status_code)


def _parse(model: type[M], data: Any, response: httpx.Response, action: str) -> M:
    """Validate a response body, reporting a malformed one as a server error."""
    try:
        return model.model_validate(data)
    except ModelValidationError as e:
        logger.error(f"Unexpected response body while trying to {action}: {e}")
        raise ServerError(
            f"Unexpected response from the server while trying to {action}",
            response.status_code,
        ) from e


class ShareFareClient:
    """Typed wrappers over the ShareFare endpoints.

    Authenticated methods return None when the request layer handled an
    authentication failure; callers should stop quietly in that case.
    """

    def __init__(self, http: AuthenticatedClient):
        """Initialize with an authenticated request client."""
        self.http = http

    # ========================================================================
    # Authentication
    # ========================================================================

    async def _authenticate(self, path: str, user: dict[str, Any]) -> str:
        response = await self.http.send_public("POST", path, json={"user": user})
        if not response.is_success:
            message = extract_error_message(response)
            raise AuthenticationError(message or f"HTTP {response.status_code}")

        token = _json(response).get("token")
        if not token or not isinstance(token, str):
            raise AuthenticationError("Missing token in response")

        self.http.credentials.set(token)
        self.http.router.to_home()
        return token

    async def login(
        self, identifier: str, password: str, field: LoginField = "email"
    ) -> str:
        """
        Log in and store the returned token.

        Args:
            identifier: Email, login name or phone number
            password: Account password
            field: Which identifier the server should match on

        Returns:
            The issued token

        Raises:
            AuthenticationError: If the server refuses or returns no token
        """
        return await self._authenticate(
            "/login", {field: identifier.strip(), "password": password}
        )

    async def signup(self, email: str, password: str, name: str) -> str:
        """Create an account and store the returned token."""
        return await self._authenticate(
            "/signup",
            {"email": email.strip(), "password": password, "name": name.strip()},
        )

    async def logout(self):
        """Revoke the token server-side (best effort) and clear the local session."""
        try:
            response = await self.http.delete("/logout")
            if response is not None and not response.is_success:
                logger.warning(f"Server logout returned {response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"Server logout failed: {e}")
        finally:
            self.http.invalidate_session()

    # ========================================================================
    # Current user
    # ========================================================================

    async def get_me(self) -> User | None:
        """Fetch the current user's profile."""
        response = await self.http.get("/api/me")
        if response is None:
            return None
        _raise_for_error(response, "load profile")
        data = _json(response).get("data") or {}
        return _parse(User, data, response, "load profile")

    async def update_me(
        self, name: str, email: str | None = None, phone_number: str | None = None
    ) -> User | None:
        """Update the current user's profile."""
        response = await self.http.patch(
            "/api/me",
            json={
                "name": name.strip(),
                "email": (email or "").strip() or None,
                "phone_number": (phone_number or "").strip() or None,
            },
        )
        if response is None:
            return None
        _raise_for_error(response, "update profile")
        data = _json(response).get("data") or {}
        return _parse(User, data, response, "update profile")

    async def list_users(self) -> list[User] | None:
        """List users that can be added to groups."""
        response = await self.http.get("/api/users")
        if response is None:
            return None
        _raise_for_error(response, "load users")
        return [
            _parse(User, u, response, "load users")
            for u in _json(response).get("users", [])
        ]

    async def delete_account(self) -> bool:
        """
        Delete the current user's account, then clear the local session.

        Returns:
            True once the account is gone, False if the request layer handled
            an authentication failure

        Raises:
            ServerError: If the server refuses; the session is kept
        """
        response = await self.http.delete("/api/me")
        if response is None:
            return False
        _raise_for_error(response, "delete account")

        logger.info("Account deleted; clearing local session")
        self.http.invalidate_session()
        return True

    # ========================================================================
    # Invites and email verification
    # ========================================================================

    async def get_personal_invite(self) -> str | None:
        """Fetch the current user's personal invite link."""
        response = await self.http.get("/api/invites/personal")
        if response is None:
            return None
        _raise_for_error(response, "fetch personal invite")
        return _json(response).get("invite_url") or None

    async def send_verification_code(self, email: str):
        """Email a fresh verification code to ``email``."""
        response = await self.http.send_with_credential(
            "POST", "/api/email_verifications/send_code", json={"email": email.strip()}
        )
        _raise_for_error(response, "send verification code")

    async def verify_code(self, email: str, code: str):
        """
        Confirm ``email`` with the code it received.

        A rejected code raises ServerError but leaves the session alone.

        Raises:
            VerificationCodeError: If the code is not six digits; nothing is sent
            ServerError: If the server rejects the code
        """
        code = code.strip()
        well_formed = code.isascii() and code.isdigit()
        if len(code) != VERIFICATION_CODE_LENGTH or not well_formed:
            raise VerificationCodeError("Please enter the complete 6-digit code")

        response = await self.http.send_with_credential(
            "POST",
            "/api/email_verifications/verify_code",
            json={"code": code, "email": email.strip()},
        )
        _raise_for_error(response, "verify email")

    # ========================================================================
    # Groups
    # ========================================================================

    async def list_groups(self) -> list[GroupSummary] | None:
        """List the current user's groups."""
        response = await self.http.get("/api/groups")
        if response is None:
            return None
        _raise_for_error(response, "fetch user groups")
        return [
            _parse(GroupSummary, g, response, "fetch user groups")
            for g in _json(response).get("groups", [])
        ]

    async def get_group(self, group_id: int | str) -> Group | None:
        """Fetch a group with its member balances and recent expenses."""
        response = await self.http.get(f"/api/groups/{group_id}")
        if response is None:
            return None
        _raise_for_error(response, "fetch group details")
        data = _json(response)
        return _parse(
            Group, data.get("group") or data, response, "fetch group details"
        )

    async def create_group(
        self,
        name: str,
        description: str | None,
        members: list[NewGroupMember],
    ) -> dict[str, Any] | None:
        """
        Create a group. Input is expected to be validated already.

        Returns:
            The decoded response body (possibly empty), or None if the request
            layer handled an authentication failure
        """
        group: dict[str, Any] = {
            "name": name,
            "members": [m.model_dump(exclude_none=True) for m in members],
        }
        if description:
            group["description"] = description

        response = await self.http.post("/api/groups", json={"group": group})
        if response is None:
            return None
        _raise_for_error(response, "create a group")
        return _json(response)

    async def create_group_invite(self, group_id: int | str) -> str | None:
        """
        Create (or fetch) a shareable invite link for a group.

        Returns:
            The invite URL, or None when there is no invite to share: auth
            was handled, the user is not a member (403), the group is gone
            (404), or the server sent no URL
        """
        response = await self.http.post(f"/api/groups/{group_id}/invites")
        if response is None:
            return None
        if response.status_code in INVITE_UNAVAILABLE_STATUSES:
            logger.info(f"No invite for group {group_id}: {response.status_code}")
            return None
        _raise_for_error(response, "create a group invite")

        invite = _json(response).get("invite")
        url = invite.get("invite_url") if isinstance(invite, dict) else None
        return url or None

    # ========================================================================
    # Expenses and settlements
    # ========================================================================

    async def create_expense(
        self, group_id: int | str, draft: ExpenseDraft
    ) -> dict[str, Any] | None:
        """Record an expense in a group."""
        response = await self.http.post(
            f"/api/groups/{group_id}/expenses", json=draft.to_payload()
        )
        if response is None:
            return None
        _raise_for_error(response, "create expense")
        return _json(response)

    async def create_settlement(
        self, group_id: int | str, settlement: Settlement
    ) -> dict[str, Any] | None:
        """Record a settlement between two group members."""
        response = await self.http.post(
            f"/api/groups/{group_id}/settlements", json=settlement.to_payload()
        )
        if response is None:
            return None
        _raise_for_error(response, "create settlement")
        return _json(response)

    async def get_dashboard(self) -> Dashboard | None:
        """Fetch totals and outstanding balances across all groups."""
        response = await self.http.get("/api/dashboard")
        if response is None:
            return None
        _raise_for_error(response, "fetch dashboard data")
        return _parse(Dashboard, _json(response), response, "fetch dashboard data")

    async def get_current_user_id(self) -> UserId | None:
        """Resolve the current user's id. Always asks the server."""
        user = await self.get_me()
        return user.id if user is not None else None
