"""Service layer that composes the API client and reconciliation logic."""

import logging
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from .clients.sharefare import ShareFareClient
from .exceptions import (
    ExpenseValidationError,
    GroupValidationError,
    IdentityLookupError,
)
from .models import (
    ExpenseDraft,
    Group,
    GroupSummary,
    MemberBalance,
    NewGroupMember,
    Settlement,
    User,
    UserId,
)
from .reconciler import (
    BalancePartition,
    build_settlement,
    partition_balances,
    validate_settlement_amount,
)

logger = logging.getLogger(__name__)


class LedgerService:
    """Loads groups, prepares settlements and creates groups and expenses.

    Group snapshots are replaced wholesale on every load. Each load takes a
    ticket from a per-group counter; a response is only kept if no newer
    ticket has been applied, so a slow, older fetch can never overwrite a
    fresher one (for example the refetch that follows a settlement).
    """

    def __init__(self, client: ShareFareClient):
        """Initialize the service."""
        self.client = client
        self._tickets: dict[str, int] = {}
        self._applied: dict[str, int] = {}
        self._groups: dict[str, Group] = {}

    # ========================================================================
    # Group loading
    # ========================================================================

    def current_group(self, group_id: int | str) -> Group | None:
        """Latest applied snapshot for a group, if any."""
        return self._groups.get(str(group_id))

    def discard_group(self, group_id: int | str):
        """Drop the snapshot when the group is no longer on screen."""
        key = str(group_id)
        self._groups.pop(key, None)
        self._applied.pop(key, None)

    async def load_group(self, group_id: int | str) -> Group | None:
        """
        Fetch a group and apply it unless a newer load already landed.

        Returns:
            The latest applied snapshot (which may come from a newer load),
            or None if the request was not completed
        """
        key = str(group_id)
        ticket = self._tickets.get(key, 0) + 1
        self._tickets[key] = ticket

        group = await self.client.get_group(group_id)
        if group is None:
            return None

        if ticket < self._applied.get(key, 0):
            logger.debug(
                f"Discarding stale load #{ticket} of group {key} "
                f"(#{self._applied[key]} already applied)"
            )
            return self._groups.get(key)

        self._applied[key] = ticket
        self._groups[key] = group
        return group

    async def load_partition(
        self, group_id: int | str, current_user_id: UserId | None = None
    ) -> BalancePartition | None:
        """Load a group and partition its member balances."""
        group = await self.load_group(group_id)
        if group is None:
            return None
        return partition_balances(group.member_balances, current_user_id)

    async def list_groups(self) -> list[GroupSummary] | None:
        """Fetch the group listing."""
        return await self.client.list_groups()

    # ========================================================================
    # Settlements
    # ========================================================================

    async def prepare_settlement(
        self,
        member: MemberBalance,
        proposed_amount: str | int | float | Decimal | None,
        notes: str | None = None,
    ) -> Settlement | None:
        """
        Validate an amount and build a settlement against ``member``.

        The amount is checked before any request is made. The current user's
        id is then fetched fresh from the server.

        Returns:
            The settlement, or None if the identity request was not completed

        Raises:
            SettlementValidationError: If the amount or direction is invalid
            IdentityLookupError: If the server did not return a user id
        """
        amount = validate_settlement_amount(member, proposed_amount)

        user = await self.client.get_me()
        if user is None:
            return None
        if user.id is None:
            raise IdentityLookupError("Could not determine current user")

        settlement = build_settlement(member, amount, user.id, notes)
        logger.info(
            f"Prepared settlement {settlement.payer_id} -> {settlement.payee_id} "
            f"for {settlement.amount:.2f}"
        )
        return settlement

    async def submit_settlement(
        self, group_id: int | str, settlement: Settlement
    ) -> Group | None:
        """
        Post a settlement, then refetch the group.

        Balances are not adjusted locally; the refetched group is the result.

        Returns:
            The refreshed group, or None if a request was not completed
        """
        created = await self.client.create_settlement(group_id, settlement)
        if created is None:
            return None

        logger.info(f"Settlement recorded in group {group_id}; refreshing")
        return await self.load_group(group_id)

    # ========================================================================
    # Groups and expenses
    # ========================================================================

    async def create_group(
        self,
        name: str,
        members: Sequence[NewGroupMember],
        description: str | None = None,
    ) -> list[GroupSummary] | None:
        """
        Create a group and return the refreshed group listing.

        Raises:
            GroupValidationError: If the name is blank or no member is selected
        """
        name = name.strip()
        if not name:
            raise GroupValidationError("Please enter a group name")
        if not members:
            raise GroupValidationError(
                "Please add at least one member to create a group"
            )

        created = await self.client.create_group(
            name, (description or "").strip() or None, list(members)
        )
        if created is None:
            return None

        logger.info(f"Group {name!r} created; refreshing listing")
        return await self.client.list_groups()

    async def resolve_members(
        self, identifiers: Sequence[str]
    ) -> list[NewGroupMember] | None:
        """
        Turn emails or phone numbers into group members.

        Known users are matched on email or phone number, ignoring case and
        surrounding whitespace, and carry their id and name. Unknown
        identifiers are kept as invitations by email (anything with an ``@``)
        or phone number. Duplicates are dropped.
        """
        users = await self.client.list_users()
        if users is None:
            return None

        known: dict[str, User] = {}
        for user in users:
            for key in (user.email, user.phone_number):
                if key and key.strip():
                    known.setdefault(key.strip().lower(), user)

        members: list[NewGroupMember] = []
        seen: set[str] = set()
        for identifier in identifiers:
            key = identifier.strip().lower()
            if not key or key in seen:
                continue
            seen.add(key)

            user = known.get(key)
            if user is not None:
                members.append(
                    NewGroupMember(
                        id=user.id,
                        email=user.email,
                        phone_number=user.phone_number,
                        name=user.name,
                    )
                )
            elif "@" in key:
                members.append(NewGroupMember(email=identifier.strip()))
            else:
                members.append(NewGroupMember(phone_number=identifier.strip()))

        return members

    async def create_expense(
        self,
        group_id: int | str,
        description: str,
        amount: str | int | float | Decimal,
        paid_by: UserId,
        split_between: Sequence[UserId],
        notes: str | None = None,
    ) -> Group | None:
        """
        Record an expense and return the refreshed group.

        The payer is always part of the split.

        Raises:
            ExpenseValidationError: If any field fails the client-side checks
        """
        description = description.strip()
        if not description:
            raise ExpenseValidationError("Please enter a description")

        text = str(amount).strip()
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            raise ExpenseValidationError(f"{amount!r} is not a valid amount") from None
        if "_" in text:
            raise ExpenseValidationError(f"{amount!r} is not a valid amount")
        if not parsed.is_finite() or parsed <= 0:
            raise ExpenseValidationError("Amount must be greater than 0")

        split = list(split_between)
        if not split:
            raise ExpenseValidationError("Select at least one member to split with")
        if str(paid_by) not in {str(m) for m in split}:
            split.append(paid_by)

        draft = ExpenseDraft(
            description=description,
            amount=parsed,
            paid_by=paid_by,
            split_between=split,
            notes=(notes or "").strip(),
        )

        created = await self.client.create_expense(group_id, draft)
        if created is None:
            return None

        return await self.load_group(group_id)
