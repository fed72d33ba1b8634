"""Balance partitioning and settlement validation.

Balances are computed by the server. Everything here works on the
``MemberBalance`` projections it returns and never adjusts them locally.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Literal

from .exceptions import SettlementValidationError
from .models import MemberBalance, Settlement, UserId

logger = logging.getLogger(__name__)

Direction = Literal["owes_you", "you_owe"]

ZERO = Decimal("0")


@dataclass
class BalancePartition:
    """Member balances split by direction, each in server order."""

    owed_to_user: list[MemberBalance] = field(default_factory=list)
    user_owes: list[MemberBalance] = field(default_factory=list)
    settled: list[MemberBalance] = field(default_factory=list)

    @property
    def total_owed_to_user(self) -> Decimal:
        return sum((mb.owes_you for mb in self.owed_to_user), ZERO)

    @property
    def total_user_owes(self) -> Decimal:
        return sum((mb.you_owe for mb in self.user_owes), ZERO)


def _same_user(user_id: UserId | None, other: UserId | None) -> bool:
    # Ids arrive as ints from some endpoints and strings from others.
    return user_id is not None and other is not None and str(user_id) == str(other)


def partition_balances(
    balances: list[MemberBalance], current_user_id: UserId | None = None
) -> BalancePartition:
    """
    Split balances into "owes you", "you owe" and "settled".

    Args:
        balances: Member balances as returned for a group
        current_user_id: If given, an entry for this user is dropped

    Returns:
        Three disjoint lists whose union is the input minus any self entry
    """
    partition = BalancePartition()

    for member in balances:
        if _same_user(member.user.id, current_user_id):
            logger.debug(f"Skipping self-referential balance for {current_user_id}")
            continue

        if member.owes_you > 0:
            partition.owed_to_user.append(member)
        elif member.you_owe > 0:
            partition.user_owes.append(member)
        else:
            partition.settled.append(member)

    return partition


def settlement_direction(member: MemberBalance) -> Direction:
    """
    Determine which way a settlement with ``member`` flows.

    Raises:
        SettlementValidationError: If nothing is owed either way
    """
    if member.owes_you > 0:
        return "owes_you"
    if member.you_owe > 0:
        return "you_owe"
    raise SettlementValidationError(
        "nothing_to_settle",
        f"Nothing to settle with {member.user.display_name}",
    )


def max_settlement_amount(member: MemberBalance) -> Decimal:
    """Outstanding balance in the active direction."""
    return member.owes_you if member.owes_you > 0 else member.you_owe


def parse_amount(value: str | int | float | Decimal | None) -> Decimal:
    """
    Parse a user-entered amount.

    Args:
        value: Text from an input field, or a number

    Returns:
        The amount as a finite Decimal

    Raises:
        SettlementValidationError: If the value is empty or not a finite number
    """
    text = str(value).strip() if value is not None else ""
    if not text:
        raise SettlementValidationError(
            "not_a_number", "Please enter a settlement amount"
        )

    # Decimal() also takes digit-group underscores ("1_000"); plain digits only.
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise SettlementValidationError(
            "not_a_number", f"{text!r} is not a valid amount"
        ) from None

    if "_" in text or not amount.is_finite():
        raise SettlementValidationError(
            "not_a_number", f"{text!r} is not a valid amount"
        )

    return amount


def validate_settlement_amount(
    member: MemberBalance, proposed_amount: str | int | float | Decimal | None
) -> Decimal:
    """
    Check a proposed amount against the member's outstanding balance.

    Args:
        member: The counterpart's current balance
        proposed_amount: Amount the user entered

    Returns:
        The accepted amount

    Raises:
        SettlementValidationError: ``reason`` names the violated bound
    """
    settlement_direction(member)
    amount = parse_amount(proposed_amount)

    if amount <= 0:
        raise SettlementValidationError(
            "non_positive", "Settlement amount must be greater than 0", bound=ZERO
        )

    max_amount = max_settlement_amount(member)
    if amount > max_amount:
        raise SettlementValidationError(
            "exceeds_balance",
            f"Settlement amount cannot exceed {max_amount:.2f}",
            bound=max_amount,
        )

    return amount


def build_settlement(
    member: MemberBalance,
    amount: Decimal,
    current_user_id: UserId,
    notes: str | None = None,
) -> Settlement:
    """
    Materialize payer and payee for a validated amount.

    If the member owes the current user, the member pays; otherwise the
    current user pays the member.
    """
    if member.user.id is None:
        raise SettlementValidationError(
            "nothing_to_settle", "Selected member has no id"
        )

    if settlement_direction(member) == "owes_you":
        payer_id, payee_id = member.user.id, current_user_id
    else:
        payer_id, payee_id = current_user_id, member.user.id

    return Settlement(
        payer_id=payer_id,
        payee_id=payee_id,
        amount=amount,
        notes=(notes or "").strip() or None,
    )
