"""Shared fixtures for TripSplit tests."""

import pytest
from helpers import make_by_amount, make_by_percentage, make_equal

from tripsplit.models import Member


@pytest.fixture
def members():
    """Three trip members A, B and C."""
    return [
        Member(id="a", name="Alice"),
        Member(id="b", name="Bob"),
        Member(id="c", name="Carol", email="carol@example.com"),
    ]


@pytest.fixture
def mixed_expenses():
    """A realistic trip using all three split rules."""
    return [
        make_equal("e1", "90.00", "a", ["a", "b", "c"]),
        make_by_amount("e2", "50.00", "b", {"a": "20.00", "b": "10.00", "c": "20.00"}),
        make_by_percentage("e3", "33.33", "c", {"a": "50", "b": "25", "c": "25"}),
        make_equal("e4", "10.00", "a", ["b", "c"]),
    ]
