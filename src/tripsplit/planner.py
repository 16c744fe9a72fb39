"""Greedy settlement planning from net balances.

Finding the minimum number of payments is NP-hard; the greedy pairing of
the largest debtor with the largest creditor needs at most n - 1 payments
and is what group-expense apps conventionally use.
"""

import heapq
import logging
from collections.abc import Mapping
from decimal import Decimal

from .exceptions import UnbalancedLedgerError
from .models import Settlement
from .money import DEFAULT_CURRENCY, Currency, largest_key

logger = logging.getLogger(__name__)

# Largest residual (in minor units) accepted from the caller's balances
LEDGER_TOLERANCE_UNITS = 1


class SettlementPlanner:
    """Turns net balances into an ordered list of payments."""

    def __init__(self, currency: Currency = DEFAULT_CURRENCY):
        """Initialize the planner for a currency."""
        self.currency = currency

    def plan(
        self,
        balances: Mapping[str, Decimal],
        names: Mapping[str, str] | None = None,
    ) -> list[Settlement]:
        """
        Compute payments that bring every balance to zero.

        Steps:
        1. Check the balances sum to zero (within one minor unit)
        2. Drop settled members, split the rest into debtors and creditors
        3. Repeatedly pay from the largest debtor to the largest creditor
           (ties by ascending member id) until nobody is left

        Args:
            balances: Member id -> net balance (positive = is owed)
            names: Optional member id -> display name

        Returns:
            Settlements in the order they were planned

        Raises:
            UnbalancedLedgerError: If the balances don't sum to zero
        """
        units = {
            member_id: self.currency.to_units(balance)
            for member_id, balance in balances.items()
        }
        return self.plan_units(units, names)

    def plan_units(
        self,
        balances: Mapping[str, int],
        names: Mapping[str, str] | None = None,
    ) -> list[Settlement]:
        """Same as plan, with balances in integer minor units."""
        names = names or {}
        units = self._balanced(balances)

        # Heaps ordered by (largest amount first, then member id)
        debtors = [(amount, member_id) for member_id, amount in units.items() if amount < 0]
        creditors = [(-amount, member_id) for member_id, amount in units.items() if amount > 0]
        heapq.heapify(debtors)
        heapq.heapify(creditors)
        total_debt = -sum(amount for amount, _ in debtors)

        transfers: list[tuple[str, str, int]] = []
        while debtors and creditors:
            debt, debtor = heapq.heappop(debtors)
            credit, creditor = heapq.heappop(creditors)

            transfer = min(-debt, -credit)
            transfers.append((debtor, creditor, transfer))

            if debt + transfer < 0:
                heapq.heappush(debtors, (debt + transfer, debtor))
            if credit + transfer < 0:
                heapq.heappush(creditors, (credit + transfer, creditor))

        # Final verification
        paid = sum(amount for _, _, amount in transfers)
        if debtors or creditors or paid != total_debt:
            logger.error(
                f"Settlement plan leaves {total_debt - paid} minor units unsettled"
            )
            raise UnbalancedLedgerError(total_debt - paid)

        logger.info(
            f"Planned {len(transfers)} settlements for "
            f"{sum(1 for amount in units.values() if amount)} unsettled members"
        )

        return [
            Settlement(
                from_id=debtor,
                from_name=names.get(debtor, debtor),
                to_id=creditor,
                to_name=names.get(creditor, creditor),
                amount=self.currency.from_units(amount),
            )
            for debtor, creditor, amount in transfers
        ]

    def _balanced(self, balances: Mapping[str, int]) -> dict[str, int]:
        """Check conservation and absorb a sub-tolerance residual."""
        units = dict(balances)
        residual = sum(units.values())

        if abs(residual) > LEDGER_TOLERANCE_UNITS:
            logger.error(
                f"Refusing to plan settlements: balances sum to {residual} minor units"
            )
            raise UnbalancedLedgerError(residual)

        if residual != 0:
            key = largest_key(units)
            units[key] -= residual
            logger.info(f"Absorbed ledger residual of {residual} minor units into {key}")

        return units
