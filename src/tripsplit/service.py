"""Service layer that composes the trip store and the settlement engine.

The store supplies read-only snapshots; every balance or settlement is
recomputed from the current expenses on each call.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .config import Settings
from .db import Database
from .engine import SettlementEngine, compute_snapshot_hash
from .exceptions import UnknownMemberError
from .models import Expense, Member, Settlement, Split, TripSummary
from .records import TripSnapshot, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


def generate_id() -> str:
    """Short random id for members and expenses created locally."""
    return uuid.uuid4().hex[:12]


class TripService:
    """Service for managing one trip's members, expenses and settlements."""

    def __init__(self, settings: Settings, database: Database, trip_id: str | None = None):
        """Initialize the trip service."""
        self.settings = settings
        self.db = database
        self.trip_id = trip_id or settings.default_trip
        self.engine = SettlementEngine(settings.currency)

    # ========================================================================
    # Members
    # ========================================================================

    def list_members(self) -> list[Member]:
        return self.db.get_members(self.trip_id)

    def add_member(
        self, name: str, email: str | None = None, member_id: str | None = None
    ) -> Member:
        """Add a participant to the trip."""
        member = Member(id=member_id or generate_id(), name=name, email=email)
        self.db.add_member(self.trip_id, member)
        return member

    def remove_member(self, member_id: str):
        """Remove a participant who isn't referenced by any expense."""
        self.db.remove_member(self.trip_id, member_id)

    def find_member(self, member_id: str) -> Member:
        """
        Look up a member by id.

        Raises:
            UnknownMemberError: If the member isn't in the trip
        """
        for member in self.list_members():
            if member.id == member_id:
                return member
        raise UnknownMemberError(member_id)

    # ========================================================================
    # Expenses
    # ========================================================================

    def list_expenses(self) -> list[Expense]:
        return self.db.get_expenses(self.trip_id)

    def add_expense(
        self,
        description: str,
        amount: Decimal,
        paid_by_id: str,
        split: Split,
        category: str = "other",
        date: datetime | None = None,
        expense_id: str | None = None,
    ) -> Expense:
        """
        Validate and save an expense.

        The expense is resolved against the current roster before it is
        stored, so a bad split never reaches the ledger.

        Returns:
            The saved expense

        Raises:
            UnknownMemberError, InvalidSplitError: If the expense is invalid
        """
        now = datetime.now()
        expense = Expense(
            id=expense_id or generate_id(),
            description=description.strip(),
            amount=amount,
            paid_by_id=paid_by_id,
            category=category,
            split=split,
            date=date or now,
            created_at=now,
        )

        shares = self.engine.resolver.resolve_shares(expense, self.list_members())
        logger.debug(f"Validated expense {expense.id}: {shares}")

        self.db.save_expense(self.trip_id, expense)
        logger.info(
            f"Added expense {expense.id} ({expense.description}, "
            f"{self.engine.currency.format(expense.amount)}) to trip {self.trip_id}"
        )
        return expense

    def delete_expense(self, expense_id: str):
        self.db.delete_expense(self.trip_id, expense_id)

    # ========================================================================
    # Settlement
    # ========================================================================

    def get_balances(self) -> dict[str, Decimal]:
        """Net balance per member, computed from the stored expenses."""
        return self.engine.net_balances(self.list_expenses(), self.list_members())

    def get_settlements(self) -> list[Settlement]:
        """Payments that would settle the trip right now."""
        expenses = self.list_expenses()
        members = self.list_members()
        settlements = self.engine.calculate_settlements(expenses, members)

        logger.info(
            f"Computed {len(settlements)} settlements for trip {self.trip_id} "
            f"(snapshot {compute_snapshot_hash(expenses, members)[:8]}...)"
        )
        return settlements

    def get_summary(self) -> TripSummary:
        return self.engine.summarize(self.list_expenses(), self.list_members())

    def import_snapshot(self, path: Path) -> tuple[int, int]:
        """
        Import members and expenses from a JSON export into this trip.

        Every expense is validated against the imported roster before
        anything is written.

        Returns:
            Tuple of (members imported, expenses imported)
        """
        snapshot = load_snapshot(path, self.engine.currency.minor_unit_digits)
        if snapshot.currency_code != self.engine.currency.code:
            logger.warning(
                f"Snapshot currency {snapshot.currency_code} differs from "
                f"configured {self.engine.currency.code}; amounts are not converted"
            )

        members = list({m.id: m for m in self.list_members() + snapshot.members}.values())
        self.engine.net_balances(snapshot.expenses, members)

        for member in snapshot.members:
            self.db.add_member(self.trip_id, member)
        for expense in snapshot.expenses:
            self.db.save_expense(self.trip_id, expense)

        logger.info(
            f"Imported {len(snapshot.members)} members and "
            f"{len(snapshot.expenses)} expenses into trip {self.trip_id}"
        )
        return len(snapshot.members), len(snapshot.expenses)

    def export_snapshot(self, path: Path) -> tuple[int, int]:
        """
        Write this trip's members and expenses as a JSON export.

        The file can be read back with import_snapshot.

        Returns:
            Tuple of (members exported, expenses exported)
        """
        snapshot = TripSnapshot(
            currency_code=self.engine.currency.code,
            members=self.list_members(),
            expenses=self.list_expenses(),
        )
        save_snapshot(snapshot, path)
        return len(snapshot.members), len(snapshot.expenses)

    def list_trips(self) -> list[str]:
        """All trip ids in the store."""
        return self.db.list_trips()
