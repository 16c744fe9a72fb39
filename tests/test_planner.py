"""Tests for greedy settlement planning."""

from decimal import Decimal

import pytest

from tripsplit.exceptions import UnbalancedLedgerError
from tripsplit.planner import SettlementPlanner


def d(value: str) -> Decimal:
    return Decimal(value)


def apply_settlements(balances, settlements):
    """Apply payments to balances: payer's debt shrinks, payee's credit shrinks."""
    result = dict(balances)
    for s in settlements:
        result[s.from_id] += s.amount
        result[s.to_id] -= s.amount
    return result


@pytest.fixture
def planner():
    return SettlementPlanner()


class TestPlan:
    """Greedy max-debtor / max-creditor pairing."""

    def test_one_creditor_two_debtors(self, planner):
        balances = {"a": d("60.00"), "b": d("-30.00"), "c": d("-30.00")}

        settlements = planner.plan(balances, {"a": "Alice", "b": "Bob", "c": "Carol"})

        assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
            ("b", "a", d("30.00")),
            ("c", "a", d("30.00")),
        ]
        assert settlements[0].from_name == "Bob"
        assert settlements[0].to_name == "Alice"

    def test_largest_debtor_pays_largest_creditor_first(self, planner):
        balances = {"a": d("50"), "b": d("30"), "c": d("-60"), "d": d("-20")}

        settlements = planner.plan(balances)

        assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
            ("c", "a", d("50.00")),
            ("d", "b", d("20.00")),
            ("c", "b", d("10.00")),
        ]

    def test_creditor_tie_broken_by_id(self, planner):
        balances = {"b": d("10"), "a": d("10"), "c": d("-20")}

        settlements = planner.plan(balances)

        assert [s.to_id for s in settlements] == ["a", "b"]

    def test_at_most_n_minus_one_payments(self, planner):
        balances = {
            "a": d("17.50"),
            "b": d("-3.25"),
            "c": d("40.00"),
            "d": d("-25.25"),
            "e": d("-29.00"),
        }

        settlements = planner.plan(balances)

        assert len(settlements) <= len(balances) - 1

    def test_settlements_zero_every_balance(self, planner):
        balances = {
            "a": d("17.50"),
            "b": d("-3.25"),
            "c": d("40.00"),
            "d": d("-25.25"),
            "e": d("-29.00"),
        }

        settlements = planner.plan(balances)

        assert all(v == 0 for v in apply_settlements(balances, settlements).values())
        assert all(s.amount > 0 for s in settlements)

    def test_settled_members_dropped(self, planner):
        balances = {"a": d("0.00"), "b": d("5.00"), "c": d("-5.00")}

        settlements = planner.plan(balances)

        assert len(settlements) == 1
        assert "a" not in (settlements[0].from_id, settlements[0].to_id)

    def test_all_settled_returns_empty(self, planner):
        assert planner.plan({"a": d("0"), "b": d("0")}) == []

    def test_empty_balances(self, planner):
        assert planner.plan({}) == []

    def test_names_default_to_ids(self, planner):
        settlements = planner.plan({"a": d("1.00"), "b": d("-1.00")})

        assert settlements[0].from_name == "b"
        assert settlements[0].to_name == "a"

    def test_sub_cent_noise_is_zero(self, planner):
        """Balances within half a cent of zero count as settled."""
        balances = {"a": d("0.004"), "b": d("-0.004")}

        assert planner.plan(balances) == []

    def test_deterministic(self, planner):
        balances = {"a": d("12.00"), "b": d("12.00"), "c": d("-12.00"), "d": d("-12.00")}

        assert planner.plan(balances) == planner.plan(dict(reversed(balances.items())))


class TestConservation:
    """Inconsistent balances are rejected rather than half-settled."""

    def test_unbalanced_raises(self, planner):
        with pytest.raises(UnbalancedLedgerError) as exc_info:
            planner.plan({"a": d("10.00"), "b": d("-5.00")})

        assert exc_info.value.residual_units == 500

    def test_one_cent_residual_absorbed(self, planner):
        """A one-cent residual goes to the largest balance so the plan still closes."""
        settlements = planner.plan({"a": d("10.01"), "b": d("-10.00")})

        assert [(s.from_id, s.to_id, s.amount) for s in settlements] == [
            ("b", "a", d("10.00")),
        ]

    def test_two_cent_residual_raises(self, planner):
        with pytest.raises(UnbalancedLedgerError):
            planner.plan({"a": d("10.02"), "b": d("-10.00")})
