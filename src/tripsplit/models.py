"""Pydantic domain models for TripSplit."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

# Categories offered by the expense form
EXPENSE_CATEGORIES = (
    "food",
    "transport",
    "accommodation",
    "activities",
    "shopping",
    "other",
)

SplitKind = Literal["equally", "byAmount", "byPercentage"]


# ============================================================================
# Trip Models
# ============================================================================


class Member(BaseModel):
    """A trip participant."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None


class Comment(BaseModel):
    """A comment left on an expense."""

    model_config = ConfigDict(frozen=True)

    member_id: str
    text: str
    created_at: datetime | None = None


# ============================================================================
# Split Rules
# ============================================================================


class AmountEntry(BaseModel):
    """A fixed amount owed by one member."""

    model_config = ConfigDict(frozen=True)

    member_id: str
    amount: Decimal = Field(ge=0)


class PercentageEntry(BaseModel):
    """A percentage of the expense owed by one member."""

    model_config = ConfigDict(frozen=True)

    member_id: str
    percentage: Decimal = Field(ge=0, le=100)


class EqualSplit(BaseModel):
    """Divide the expense evenly among the listed members."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["equally"] = "equally"
    participant_ids: tuple[str, ...]

    @property
    def member_ids(self) -> list[str]:
        return list(self.participant_ids)


class AmountSplit(BaseModel):
    """Each listed member owes an explicit amount."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["byAmount"] = "byAmount"
    entries: tuple[AmountEntry, ...]

    @property
    def member_ids(self) -> list[str]:
        return [entry.member_id for entry in self.entries]


class PercentageSplit(BaseModel):
    """Each listed member owes a percentage of the expense."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["byPercentage"] = "byPercentage"
    entries: tuple[PercentageEntry, ...]

    @property
    def member_ids(self) -> list[str]:
        return [entry.member_id for entry in self.entries]


Split = Annotated[
    EqualSplit | AmountSplit | PercentageSplit, Field(discriminator="kind")
]


class Expense(BaseModel):
    """A shared expense paid by one member.

    `date` and `created_at` arrive pre-normalized from the store adapter and
    are only used for ordering; the engine never interprets them.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    amount: Decimal = Field(gt=0)
    paid_by_id: str
    category: str = "other"
    split: Split
    date: datetime | None = None
    created_at: datetime | None = None
    comments: tuple[Comment, ...] = ()
    receipt_image_uri: str | None = None

    @property
    def participant_ids(self) -> list[str]:
        """Member ids sharing this expense, in listed order."""
        return self.split.member_ids

    def references(self, member_id: str) -> bool:
        """True if the member paid for or shares this expense."""
        return member_id == self.paid_by_id or member_id in self.participant_ids


# ============================================================================
# Computed Models
# ============================================================================


class Settlement(BaseModel):
    """A proposed payment from one member to another.

    Settlements are recomputed on every call and have no identity; marking
    one as paid is the caller's bookkeeping.
    """

    model_config = ConfigDict(frozen=True)

    from_id: str
    from_name: str
    to_id: str
    to_name: str
    amount: Decimal = Field(gt=0)


class MemberSummary(BaseModel):
    """What a member paid, what they owe, and the difference."""

    member_id: str
    name: str
    paid: Decimal
    share: Decimal
    net: Decimal  # positive = is owed, negative = owes


class TripSummary(BaseModel):
    """Totals for a trip's expenses."""

    currency_code: str
    total_spent: Decimal
    expense_count: int
    members: list[MemberSummary]
    settlements: list[Settlement] = Field(default_factory=list)

    @property
    def is_settled(self) -> bool:
        return not self.settlements
