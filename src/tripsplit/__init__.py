"""TripSplit - Split shared trip expenses and settle up with as few payments as possible."""

__version__ = "0.1.0"

from .balances import BalanceAggregator
from .config import Settings, load_settings
from .db import Database
from .engine import SettlementEngine, calculate_settlements, compute_snapshot_hash
from .exceptions import (
    EmptySplitError,
    InvalidSplitError,
    TripSplitError,
    UnbalancedLedgerError,
    UnknownMemberError,
)
from .models import (
    AmountEntry,
    AmountSplit,
    EqualSplit,
    Expense,
    Member,
    PercentageEntry,
    PercentageSplit,
    Settlement,
)
from .money import Currency, from_minor_units, to_minor_units
from .planner import SettlementPlanner
from .service import TripService
from .splits import SplitResolver

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "AmountEntry",
    "AmountSplit",
    "EqualSplit",
    "Expense",
    "Member",
    "PercentageEntry",
    "PercentageSplit",
    "Settlement",
    "Currency",
    "from_minor_units",
    "to_minor_units",
    "SplitResolver",
    "BalanceAggregator",
    "SettlementPlanner",
    "SettlementEngine",
    "calculate_settlements",
    "compute_snapshot_hash",
    "TripService",
    "TripSplitError",
    "UnknownMemberError",
    "InvalidSplitError",
    "EmptySplitError",
    "UnbalancedLedgerError",
]
