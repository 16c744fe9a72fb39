"""Settlement engine: the entry point the UI layers call.

The engine is a pure function of (expenses, members). It never mutates
its inputs or keeps references to them, so callers may memoize results by
compute_snapshot_hash.
"""

import hashlib
import json
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .balances import BalanceAggregator
from .models import (
    AmountSplit,
    EqualSplit,
    Expense,
    Member,
    MemberSummary,
    Settlement,
    TripSummary,
)
from .money import DEFAULT_CURRENCY, Currency
from .planner import SettlementPlanner
from .splits import SplitResolver, build_roster


class SettlementEngine:
    """Composes SplitResolver, BalanceAggregator and SettlementPlanner."""

    def __init__(self, currency: Currency = DEFAULT_CURRENCY):
        """Initialize the engine for a currency."""
        self.currency = currency
        self.resolver = SplitResolver(currency)
        self.aggregator = BalanceAggregator(self.resolver)
        self.planner = SettlementPlanner(currency)

    def calculate_settlements(
        self, expenses: Iterable[Expense], members: Iterable[Member]
    ) -> list[Settlement]:
        """
        Compute who should pay whom to settle the trip.

        Args:
            expenses: The trip's expenses
            members: The trip roster

        Returns:
            Ordered list of settlements; empty when everyone is even
        """
        members = list(members)
        balances = self.aggregator.aggregate(expenses, members)
        return self.planner.plan(balances, {member.id: member.name for member in members})

    def net_balances(
        self, expenses: Iterable[Expense], members: Iterable[Member]
    ) -> dict[str, Decimal]:
        """Member id -> net balance (positive = is owed)."""
        return self.aggregator.aggregate(expenses, members)

    def summarize(
        self, expenses: Iterable[Expense], members: Iterable[Member]
    ) -> TripSummary:
        """
        Build the trip overview: totals, per-member paid/share/net, settlements.

        Returns:
            TripSummary for the given snapshot
        """
        expenses = list(expenses)
        members = list(members)
        roster = build_roster(members)

        paid = {member_id: 0 for member_id in roster}
        share = {member_id: 0 for member_id in roster}
        for expense in expenses:
            for member_id, units in self.resolver.resolve_share_units(
                expense, roster
            ).items():
                share[member_id] += units
            paid[expense.paid_by_id] += self.currency.to_units(expense.amount)

        names = {member.id: member.name for member in members}
        net = {member_id: paid[member_id] - share[member_id] for member_id in roster}
        settlements = self.planner.plan_units(net, names)

        return TripSummary(
            currency_code=self.currency.code,
            total_spent=self.currency.from_units(sum(paid.values())),
            expense_count=len(expenses),
            members=[
                MemberSummary(
                    member_id=member_id,
                    name=names[member_id],
                    paid=self.currency.from_units(paid[member_id]),
                    share=self.currency.from_units(share[member_id]),
                    net=self.currency.from_units(net[member_id]),
                )
                for member_id in roster
            ],
            settlements=settlements,
        )

    def share_for(
        self, expense: Expense, members: Iterable[Member], member_id: str
    ) -> Decimal:
        """A member's share of one expense, zero if they don't take part."""
        shares = self.resolver.resolve_shares(expense, members)
        return shares.get(member_id, self.currency.from_units(0))


def describe_split(expense: Expense) -> str:
    """Human-readable summary of an expense's split rule."""
    if isinstance(expense.split, EqualSplit):
        count = len(expense.split.participant_ids)
        return f"Split equally among {count} {'person' if count == 1 else 'people'}"
    if isinstance(expense.split, AmountSplit):
        return "Split by custom amounts"
    return "Split by percentages"


def settlements_involving(
    settlements: Sequence[Settlement], member_id: str
) -> tuple[list[Settlement], list[Settlement]]:
    """
    Partition settlements by whether a member pays or receives.

    Returns:
        Tuple of (settlements involving the member, all other settlements)
    """
    mine = [s for s in settlements if member_id in (s.from_id, s.to_id)]
    others = [s for s in settlements if member_id not in (s.from_id, s.to_id)]
    return mine, others


def compute_snapshot_hash(expenses: Iterable[Expense], members: Iterable[Member]) -> str:
    """
    Compute a content hash of an (expenses, members) snapshot.

    Identical inputs always hash the same, so the hash can key a cache of
    engine results.
    """
    payload = {
        "members": [member.model_dump(mode="json") for member in members],
        "expenses": [expense.model_dump(mode="json") for expense in expenses],
    }
    combined = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(combined.encode()).hexdigest()


def calculate_settlements(
    expenses: Iterable[Expense],
    members: Iterable[Member],
    currency: Currency | None = None,
) -> list[Settlement]:
    """Compute settlements with a one-off engine."""
    return SettlementEngine(currency or DEFAULT_CURRENCY).calculate_settlements(
        expenses, members
    )
