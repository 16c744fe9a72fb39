"""Net balance aggregation across a trip's expenses."""

import logging
from collections.abc import Iterable
from decimal import Decimal

from .exceptions import UnbalancedLedgerError
from .models import Expense, Member
from .money import DEFAULT_CURRENCY, Currency
from .splits import SplitResolver, build_roster

logger = logging.getLogger(__name__)


class BalanceAggregator:
    """Folds every expense into one net balance per member."""

    def __init__(self, resolver: SplitResolver | None = None):
        """Initialize the aggregator."""
        self.resolver = resolver or SplitResolver()

    @property
    def currency(self) -> Currency:
        return self.resolver.currency

    def aggregate(
        self, expenses: Iterable[Expense], members: Iterable[Member]
    ) -> dict[str, Decimal]:
        """
        Compute each member's net balance.

        Positive balances are owed money, negative balances owe money. Every
        roster member appears, including members with no activity.

        Args:
            expenses: The trip's expenses (order doesn't matter)
            members: The trip roster

        Returns:
            Member id -> net balance, in roster order

        Raises:
            UnknownMemberError, InvalidSplitError: From the first invalid expense
            UnbalancedLedgerError: If the balances don't sum to zero
        """
        units = self.aggregate_units(expenses, members)
        return {
            member_id: self.currency.from_units(balance)
            for member_id, balance in units.items()
        }

    def aggregate_units(
        self, expenses: Iterable[Expense], members: Iterable[Member]
    ) -> dict[str, int]:
        """Same as aggregate, in integer minor units."""
        roster = build_roster(members)
        balances = {member_id: 0 for member_id in roster}

        count = 0
        for expense in expenses:
            # An invalid expense fails the whole fold; skipping it would
            # leave the ledger unbalanced.
            shares = self.resolver.resolve_share_units(expense, roster)
            balances[expense.paid_by_id] += self.currency.to_units(expense.amount)
            for member_id, share in shares.items():
                balances[member_id] -= share
            count += 1

        residual = sum(balances.values())
        if residual != 0:
            logger.error(
                f"Aggregated balances are off by {residual} minor units "
                f"across {count} expenses"
            )
            raise UnbalancedLedgerError(residual)

        logger.debug(f"Aggregated {count} expenses for {len(balances)} members")
        return balances
