"""Expense builders shared by the test modules."""

from datetime import datetime
from decimal import Decimal

from tripsplit.models import (
    AmountEntry,
    AmountSplit,
    EqualSplit,
    Expense,
    PercentageEntry,
    PercentageSplit,
)


def make_equal(id: str, amount: str, paid_by: str, participants: list[str]) -> Expense:
    """Create an equally-split expense for testing."""
    return Expense(
        id=id,
        description=f"Test expense {id}",
        amount=Decimal(amount),
        paid_by_id=paid_by,
        split=EqualSplit(participant_ids=tuple(participants)),
        date=datetime(2025, 1, 15),
    )


def make_by_amount(id: str, amount: str, paid_by: str, entries: dict[str, str]) -> Expense:
    """Create an expense split by explicit amounts."""
    return Expense(
        id=id,
        description=f"Test expense {id}",
        amount=Decimal(amount),
        paid_by_id=paid_by,
        split=AmountSplit(
            entries=tuple(
                AmountEntry(member_id=m, amount=Decimal(v)) for m, v in entries.items()
            )
        ),
    )


def make_by_percentage(
    id: str, amount: str, paid_by: str, entries: dict[str, str]
) -> Expense:
    """Create an expense split by percentages."""
    return Expense(
        id=id,
        description=f"Test expense {id}",
        amount=Decimal(amount),
        paid_by_id=paid_by,
        split=PercentageSplit(
            entries=tuple(
                PercentageEntry(member_id=m, percentage=Decimal(v))
                for m, v in entries.items()
            )
        ),
    )

