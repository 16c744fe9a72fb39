"""Tests for per-expense share resolution."""

from decimal import Decimal

import pytest
from helpers import make_by_amount, make_by_percentage, make_equal

from tripsplit.exceptions import (
    EmptySplitError,
    InvalidRosterError,
    InvalidSplitError,
    UnknownMemberError,
)
from tripsplit.models import Member
from tripsplit.money import Currency
from tripsplit.splits import SplitResolver


@pytest.fixture
def resolver():
    return SplitResolver()


class TestEqualSplit:
    """Equal splits with remainder distribution."""

    def test_even_division(self, resolver, members):
        """90.00 among three members divides evenly."""
        expense = make_equal("e1", "90.00", "a", ["a", "b", "c"])

        shares = resolver.resolve_shares(expense, members)

        assert shares == {"a": Decimal("30.00"), "b": Decimal("30.00"), "c": Decimal("30.00")}

    def test_remainder_goes_to_lowest_id(self, resolver, members):
        """10.00 among three: the extra cent goes to the first id."""
        expense = make_equal("e1", "10.00", "a", ["a", "b", "c"])

        shares = resolver.resolve_shares(expense, members)

        assert list(shares.values()) == [
            Decimal("3.34"),
            Decimal("3.33"),
            Decimal("3.33"),
        ]
        assert sum(shares.values()) == Decimal("10.00")

    def test_remainder_ordering_ignores_listed_order(self, resolver, members):
        """Remainder cents follow id order, not the order participants are listed."""
        expense = make_equal("e1", "0.05", "a", ["c", "b", "a"])

        shares = resolver.resolve_share_units(expense, members)

        assert shares == {"c": 1, "b": 2, "a": 2}
        assert list(shares) == ["c", "b", "a"]

    def test_single_participant_takes_everything(self, resolver, members):
        expense = make_equal("e1", "12.34", "a", ["b"])

        assert resolver.resolve_shares(expense, members) == {"b": Decimal("12.34")}

    def test_payer_need_not_participate(self, resolver, members):
        """Payer covers an expense only others consume."""
        expense = make_equal("e1", "10.00", "a", ["b", "c"])

        shares = resolver.resolve_shares(expense, members)

        assert "a" not in shares
        assert shares == {"b": Decimal("5.00"), "c": Decimal("5.00")}

    def test_zero_digit_currency(self, members):
        """JPY has no minor unit; remainder yen go to the lowest ids."""
        resolver = SplitResolver(Currency(code="JPY", minor_unit_digits=0))
        expense = make_equal("e1", "1000", "a", ["a", "b", "c"])

        shares = resolver.resolve_shares(expense, members)

        assert shares == {"a": Decimal("334"), "b": Decimal("333"), "c": Decimal("333")}

    def test_deterministic(self, resolver, members):
        expense = make_equal("e1", "100.00", "a", ["a", "b", "c"])

        assert resolver.resolve_shares(expense, members) == resolver.resolve_shares(
            expense, members
        )


class TestAmountSplit:
    """Splits by explicit amounts."""

    def test_amounts_used_verbatim(self, resolver, members):
        expense = make_by_amount("e1", "50.00", "a", {"a": "20.00", "b": "25.00", "c": "5.00"})

        shares = resolver.resolve_shares(expense, members)

        assert shares == {"a": Decimal("20.00"), "b": Decimal("25.00"), "c": Decimal("5.00")}

    def test_sum_mismatch_raises(self, resolver, members):
        """Entries totalling 45.00 against a 50.00 expense are rejected."""
        expense = make_by_amount("e1", "50.00", "a", {"a": "20.00", "b": "25.00"})

        with pytest.raises(InvalidSplitError, match="must total"):
            resolver.resolve_shares(expense, members)

    def test_one_cent_gap_absorbed_by_largest_share(self, resolver, members):
        """A gap of one minor unit is noise: the largest share absorbs it."""
        expense = make_by_amount("e1", "10.00", "a", {"a": "3.33", "b": "3.33", "c": "3.33"})

        shares = resolver.resolve_shares(expense, members)

        assert sum(shares.values()) == Decimal("10.00")
        # All equal; tie broken by lowest id
        assert shares == {"a": Decimal("3.34"), "b": Decimal("3.33"), "c": Decimal("3.33")}

    def test_gap_absorbed_by_largest_not_first(self, resolver, members):
        expense = make_by_amount("e1", "50.00", "a", {"a": "10.00", "b": "30.01", "c": "10.00"})

        shares = resolver.resolve_shares(expense, members)

        assert shares["b"] == Decimal("30.00")
        assert sum(shares.values()) == Decimal("50.00")

    def test_two_cent_gap_raises(self, resolver, members):
        expense = make_by_amount("e1", "10.00", "a", {"a": "4.99", "b": "4.99"})

        with pytest.raises(InvalidSplitError):
            resolver.resolve_shares(expense, members)


class TestPercentageSplit:
    """Splits by percentage."""

    def test_percentages_round_to_cents(self, resolver, members):
        expense = make_by_percentage("e1", "100.00", "a", {"a": "50", "b": "30", "c": "20"})

        shares = resolver.resolve_shares(expense, members)

        assert shares == {"a": Decimal("50.00"), "b": Decimal("30.00"), "c": Decimal("20.00")}

    def test_rounding_residual_absorbed(self, resolver, members):
        """Thirds of 10.00 all round to 3.33; the tie for largest goes to the lowest id."""
        expense = make_by_percentage(
            "e1", "10.00", "a", {"a": "33.33", "b": "33.34", "c": "33.33"}
        )

        shares = resolver.resolve_shares(expense, members)

        assert sum(shares.values()) == Decimal("10.00")
        assert shares == {"a": Decimal("3.34"), "b": Decimal("3.33"), "c": Decimal("3.33")}

    def test_largest_share_absorbs_negative_residual(self, resolver, members):
        """Half-up rounding overshoots by a cent; the 50% share gives it back."""
        expense = make_by_percentage("e1", "0.03", "a", {"a": "25", "b": "50", "c": "25"})

        shares = resolver.resolve_share_units(expense, members)

        # 0.75 -> 1, 1.5 -> 2, 0.75 -> 1 overshoots 3 by one unit
        assert shares == {"a": 1, "b": 1, "c": 1}

    def test_sum_of_95_raises(self, resolver, members):
        """Percentages summing to 95 are rejected."""
        expense = make_by_percentage("e1", "100.00", "a", {"a": "50", "b": "45"})

        with pytest.raises(InvalidSplitError, match="100%"):
            resolver.resolve_shares(expense, members)

    def test_sum_within_tolerance_accepted(self, resolver, members):
        expense = make_by_percentage(
            "e1", "90.00", "a", {"a": "33.33", "b": "33.33", "c": "33.33"}
        )

        shares = resolver.resolve_shares(expense, members)

        assert sum(shares.values()) == Decimal("90.00")


class TestValidation:
    """Roster and structural checks run before any arithmetic."""

    def test_empty_split_raises(self, resolver, members):
        expense = make_equal("e1", "10.00", "a", [])

        with pytest.raises(EmptySplitError):
            resolver.resolve_shares(expense, members)

    def test_empty_split_is_invalid_split(self, resolver, members):
        expense = make_by_amount("e1", "10.00", "a", {})

        with pytest.raises(InvalidSplitError):
            resolver.resolve_shares(expense, members)

    def test_unknown_payer_raises(self, resolver, members):
        expense = make_equal("e1", "10.00", "zed", ["a", "b"])

        with pytest.raises(UnknownMemberError) as exc_info:
            resolver.resolve_shares(expense, members)

        assert exc_info.value.member_id == "zed"
        assert exc_info.value.expense_id == "e1"

    def test_unknown_participant_raises(self, resolver, members):
        expense = make_equal("e1", "10.00", "a", ["a", "ghost"])

        with pytest.raises(UnknownMemberError, match="ghost"):
            resolver.resolve_shares(expense, members)

    def test_duplicate_participant_raises(self, resolver, members):
        expense = make_equal("e1", "10.00", "a", ["a", "b", "a"])

        with pytest.raises(InvalidSplitError, match="listed twice"):
            resolver.resolve_shares(expense, members)

    def test_duplicate_roster_id_raises(self, resolver):
        roster = [Member(id="a", name="Alice"), Member(id="a", name="Another Alice")]
        expense = make_equal("e1", "10.00", "a", ["a"])

        with pytest.raises(InvalidRosterError):
            resolver.resolve_shares(expense, roster)

    def test_inputs_not_mutated(self, resolver, members):
        expense = make_by_amount("e1", "10.00", "a", {"a": "3.33", "b": "3.33", "c": "3.33"})
        before = expense.model_dump()

        resolver.resolve_shares(expense, members)

        assert expense.model_dump() == before

    def test_sub_cent_total_raises(self, resolver, members):
        """10.005 can't be split into whole cents that add back up to it."""
        expense = make_equal("e1", "10.005", "a", ["a", "b"])

        with pytest.raises(InvalidSplitError, match="minor unit"):
            resolver.resolve_shares(expense, members)

    def test_sub_cent_entry_raises(self, resolver, members):
        expense = make_by_amount("e1", "10.00", "a", {"a": "4.995", "b": "5.005"})

        with pytest.raises(InvalidSplitError, match="minor unit"):
            resolver.resolve_shares(expense, members)

    def test_fractional_yen_raises(self, members):
        resolver = SplitResolver(Currency(code="JPY", minor_unit_digits=0))
        expense = make_equal("e1", "1000.5", "a", ["a", "b"])

        with pytest.raises(InvalidSplitError):
            resolver.resolve_shares(expense, members)

    def test_trailing_zeros_accepted(self, resolver, members):
        expense = make_equal("e1", "10.000", "a", ["a", "b"])

        assert sum(resolver.resolve_shares(expense, members).values()) == expense.amount
