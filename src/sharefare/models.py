"""Pydantic domain models for the ShareFare client."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

UserId = int | str

ThemeMode = Literal["light", "dark", "system"]
THEME_MODES: tuple[str, ...] = ("light", "dark", "system")

# ============================================================================
# Users
# ============================================================================


class User(BaseModel):
    """A ShareFare user as returned inside groups, balances and /api/me."""

    id: UserId | None = None
    name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        """Best available label for this user."""
        return self.name or self.email or self.phone_number or f"user {self.id}"


# ============================================================================
# Groups and balances
# ============================================================================


class MemberBalance(BaseModel):
    """Net balance between the current user and one other member.

    ``owes_you`` is what this member will pay the current user, ``you_owe`` is
    what the current user owes them. At most one of them is non-zero.
    """

    user: User
    balance: Decimal | None = None  # signed net, informational
    owes_you: Decimal = Field(default=Decimal("0"), ge=0)
    you_owe: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("owes_you", "you_owe", mode="before")
    @classmethod
    def zero_if_missing(cls, value: object) -> object:
        """Missing or null projections read as zero."""
        return Decimal("0") if value is None or value == "" else value

    @model_validator(mode="after")
    def collapse_to_net(self) -> "MemberBalance":
        # Both projections set means the server sent two debts, not a net one.
        if self.owes_you > 0 and self.you_owe > 0:
            logger.warning(
                f"Balance for user {self.user.id} has both owes_you={self.owes_you} "
                f"and you_owe={self.you_owe}; netting them"
            )
            net = self.owes_you - self.you_owe
            self.owes_you = max(net, Decimal("0"))
            self.you_owe = max(-net, Decimal("0"))
        return self

    @property
    def net(self) -> Decimal:
        """Signed net: positive when the member owes the current user."""
        return self.owes_you - self.you_owe

    @property
    def is_settled(self) -> bool:
        """True when nothing is owed in either direction."""
        return self.owes_you == 0 and self.you_owe == 0


class Expense(BaseModel):
    """An expense as listed in a group's recent activity."""

    id: int | str
    description: str
    amount: Decimal
    paid_by: User | None = None
    created_at: datetime | None = None
    notes: str | None = None
    split_count: int | None = None


class Group(BaseModel):
    """A group detail snapshot. Replaced wholesale on every refetch."""

    id: int | str
    name: str
    description: str | None = None
    total_expense: Decimal | None = None
    balance_for_me: Decimal | None = None
    member_count: int | None = None
    members: list[User] = Field(default_factory=list)
    member_balances: list[MemberBalance] = Field(default_factory=list)
    recent_expenses: list[Expense] = Field(default_factory=list)
    created_at: datetime | None = None


class GroupSummary(BaseModel):
    """A row in the group listing."""

    id: int | str
    name: str
    description: str | None = None
    member_count: int | None = None
    expense_count: int | None = None
    total_amount: Decimal | None = Field(default=None, alias="totalAmount")
    balance_for_me: Decimal | None = Field(default=None, alias="balanceForMe")
    last_expense_date: datetime | None = None

    model_config = ConfigDict(populate_by_name=True)


class OutstandingBalance(BaseModel):
    """Cross-group balance with one other user, from the dashboard."""

    user: User
    amount: Decimal
    direction: Literal["+", "-"]
    groups: list[dict[str, int | str]] = Field(default_factory=list)


class Dashboard(BaseModel):
    """Aggregate totals across all of the current user's groups."""

    total_owed_to_me: Decimal = Decimal("0")
    total_i_owe: Decimal = Decimal("0")
    outstanding_balances: list[OutstandingBalance] = Field(default_factory=list)
    recent_expenses: list[Expense] = Field(default_factory=list)


# ============================================================================
# Outgoing requests
# ============================================================================


class Settlement(BaseModel):
    """A one-shot settlement request. Never persisted client-side."""

    payer_id: UserId
    payee_id: UserId
    amount: Decimal = Field(gt=0)
    notes: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Request body for POST /api/groups/:id/settlements."""
        settlement: dict[str, object] = {
            "payer_id": self.payer_id,
            "payee_id": self.payee_id,
            "amount": float(self.amount),
        }
        if self.notes:
            settlement["notes"] = self.notes
        return {"settlement": settlement}


class NewGroupMember(BaseModel):
    """A member selected for a group that is being created."""

    id: UserId | None = None
    email: str | None = None
    phone_number: str | None = None
    name: str | None = None


class ExpenseDraft(BaseModel):
    """A validated expense ready to be posted."""

    description: str
    amount: Decimal = Field(gt=0)
    paid_by: UserId
    split_between: list[UserId]
    notes: str = ""

    def to_payload(self) -> dict[str, object]:
        """Request body for POST /api/groups/:id/expenses."""
        return {
            "expense": {
                "description": self.description,
                "amount": float(self.amount),
                "paidBy": self.paid_by,
                "splitBetween": self.split_between,
                "notes": self.notes,
            }
        }


# ============================================================================
# Server error bodies
# ============================================================================


class ErrorDetail(BaseModel):
    """Nested ``{"error": {"message": ...}}`` object."""

    message: str


class MessageErrorBody(BaseModel):
    """``{"message": "..."}``"""

    message: str


class ErrorFieldBody(BaseModel):
    """``{"error": "..."}`` or ``{"error": {"message": "..."}}``"""

    error: str | ErrorDetail


class ErrorsListBody(BaseModel):
    """``{"errors": ["...", ...]}``"""

    errors: list[str]


class ErrorsMapBody(BaseModel):
    """``{"errors": {"field": ["...", ...]}}``"""

    errors: dict[str, list[str] | str]


class StatusErrorBody(BaseModel):
    """``{"status": {"message": "..."}}``"""

    status: ErrorDetail


ErrorBody = (
    MessageErrorBody | ErrorFieldBody | ErrorsListBody | ErrorsMapBody | StatusErrorBody
)
