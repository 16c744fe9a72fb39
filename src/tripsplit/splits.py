"""Per-expense share computation for the three split rules."""

import logging
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal

from .exceptions import (
    EmptySplitError,
    InvalidRosterError,
    InvalidSplitError,
    UnknownMemberError,
)
from .models import AmountSplit, EqualSplit, Expense, Member, PercentageSplit
from .money import DEFAULT_CURRENCY, Currency, absorb_residual

logger = logging.getLogger(__name__)

# Largest accepted gap between entry amounts and the total, in minor units
AMOUNT_TOLERANCE_UNITS = 1

# Tolerance for percentage totals (percentage points)
PERCENTAGE_TOLERANCE = Decimal("0.01")


def build_roster(members: Iterable[Member]) -> dict[str, Member]:
    """
    Index members by id, preserving roster order.

    Raises:
        InvalidRosterError: If two members share an id
    """
    roster: dict[str, Member] = {}
    for member in members:
        if member.id in roster:
            raise InvalidRosterError(f"Duplicate member id in roster: '{member.id}'")
        roster[member.id] = member
    return roster


class SplitResolver:
    """Computes each participant's share of a single expense."""

    def __init__(self, currency: Currency = DEFAULT_CURRENCY):
        """Initialize the resolver for a currency."""
        self.currency = currency

    def resolve_shares(
        self, expense: Expense, members: Iterable[Member] | Mapping[str, Member]
    ) -> dict[str, Decimal]:
        """
        Compute what each participant owes for one expense.

        Args:
            expense: The expense to split
            members: The trip roster (list of members or id -> member mapping)

        Returns:
            Member id -> share, in split order, summing exactly to expense.amount

        Raises:
            EmptySplitError: If the split lists nobody
            UnknownMemberError: If the payer or a participant isn't in the roster
            InvalidSplitError: If amounts/percentages don't reconcile with the total
        """
        units = self.resolve_share_units(expense, members)
        return {
            member_id: self.currency.from_units(share) for member_id, share in units.items()
        }

    def resolve_share_units(
        self, expense: Expense, members: Iterable[Member] | Mapping[str, Member]
    ) -> dict[str, int]:
        """Same as resolve_shares, in integer minor units."""
        roster = members if isinstance(members, Mapping) else build_roster(members)
        self.validate(expense, roster)

        total = self.currency.to_units(expense.amount)
        split = expense.split

        if isinstance(split, EqualSplit):
            shares = self._split_equally(total, split.member_ids)
        elif isinstance(split, AmountSplit):
            shares = self._split_by_amount(total, split)
        else:
            shares = self._split_by_percentage(total, split)

        if any(share < 0 for share in shares.values()):
            raise InvalidSplitError(
                f"Shares for expense {expense.id} cannot be reconciled with "
                f"{self.currency.format(expense.amount)}",
                expense_id=expense.id,
            )

        logger.debug(f"Resolved expense {expense.id}: {shares}")
        return shares

    def validate(self, expense: Expense, roster: Mapping[str, Member]) -> None:
        """
        Check an expense against the roster and its split rule.

        Raises:
            EmptySplitError, UnknownMemberError, InvalidSplitError
        """
        participant_ids = expense.participant_ids
        if not participant_ids:
            raise EmptySplitError(expense_id=expense.id)

        self._check_precision(expense.amount, expense)
        if isinstance(expense.split, AmountSplit):
            for entry in expense.split.entries:
                self._check_precision(entry.amount, expense)

        if expense.paid_by_id not in roster:
            raise UnknownMemberError(expense.paid_by_id, expense_id=expense.id)

        seen: set[str] = set()
        for member_id in participant_ids:
            if member_id not in roster:
                raise UnknownMemberError(member_id, expense_id=expense.id)
            if member_id in seen:
                raise InvalidSplitError(
                    f"Member '{member_id}' is listed twice in expense {expense.id}",
                    expense_id=expense.id,
                )
            seen.add(member_id)

        split = expense.split
        if isinstance(split, AmountSplit):
            entered = sum((entry.amount for entry in split.entries), Decimal("0"))
            gap = abs(self.currency.to_units(entered) - self.currency.to_units(expense.amount))
            if gap > AMOUNT_TOLERANCE_UNITS:
                raise InvalidSplitError(
                    f"Split amounts must total {self.currency.format(expense.amount)} "
                    f"(got {self.currency.format(entered)})",
                    expense_id=expense.id,
                )
        elif isinstance(split, PercentageSplit):
            entered = sum((entry.percentage for entry in split.entries), Decimal("0"))
            if abs(entered - 100) > PERCENTAGE_TOLERANCE:
                raise InvalidSplitError(
                    f"Split percentages must total 100% (got {entered}%)",
                    expense_id=expense.id,
                )

    def _check_precision(self, amount: Decimal, expense: Expense) -> None:
        """Amounts must be whole minor units; rounding them would break conservation."""
        if self.currency.from_units(self.currency.to_units(amount)) != amount:
            raise InvalidSplitError(
                f"Amount {amount} in expense {expense.id} is finer than the "
                f"{self.currency.code} minor unit",
                expense_id=expense.id,
            )

    def _split_equally(self, total: int, member_ids: list[str]) -> dict[str, int]:
        """Even shares; leftover units go one each to the lowest member ids."""
        base, remainder = divmod(total, len(member_ids))
        lucky = set(sorted(member_ids)[:remainder])
        return {
            member_id: base + (1 if member_id in lucky else 0) for member_id in member_ids
        }

    def _split_by_amount(self, total: int, split: AmountSplit) -> dict[str, int]:
        """Entered amounts verbatim; a sub-tolerance gap goes to the largest share."""
        shares = {
            entry.member_id: self.currency.to_units(entry.amount) for entry in split.entries
        }
        return absorb_residual(shares, total)

    def _split_by_percentage(self, total: int, split: PercentageSplit) -> dict[str, int]:
        shares = {
            entry.member_id: int(
                (total * entry.percentage / 100).quantize(
                    Decimal("1"), rounding=ROUND_HALF_UP
                )
            )
            for entry in split.entries
        }
        return absorb_residual(shares, total)
