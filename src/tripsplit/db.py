"""SQLite trip store for TripSplit."""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from .exceptions import ExpenseNotFoundError, MemberInUseError, MemberNotFoundError
from .models import Expense, Member

logger = logging.getLogger(__name__)


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Members table
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS members (
                trip_id TEXT NOT NULL,
                id TEXT NOT NULL,
                name TEXT NOT NULL,
                email TEXT,
                position INTEGER NOT NULL,
                PRIMARY KEY (trip_id, id)
            )
        """
        )

        # Expenses table (payload is the expense as JSON)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                trip_id TEXT NOT NULL,
                id TEXT NOT NULL,
                payload TEXT NOT NULL,
                expense_date TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (trip_id, id)
            )
        """
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def list_trips(self) -> list[str]:
        """Get all trip ids that have members or expenses."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT trip_id FROM members
            UNION
            SELECT trip_id FROM expenses
            ORDER BY trip_id
            """
        )
        return [row["trip_id"] for row in cursor.fetchall()]

    # ========================================================================
    # Member operations
    # ========================================================================

    def add_member(self, trip_id: str, member: Member):
        """Add a member to a trip, or update the name/email of an existing one."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO members (trip_id, id, name, email, position)
            VALUES (
                ?, ?, ?, ?,
                (SELECT COALESCE(MAX(position), -1) + 1 FROM members WHERE trip_id = ?)
            )
            ON CONFLICT(trip_id, id) DO UPDATE SET
                name = excluded.name,
                email = excluded.email
            """,
            (trip_id, member.id, member.name, member.email, trip_id),
        )
        self.conn.commit()
        logger.info(f"Saved member {member.id} ({member.name}) in trip {trip_id}")

    def get_members(self, trip_id: str) -> list[Member]:
        """Get a trip's members in the order they were added."""
        cursor = self.conn.cursor()
        cursor.execute(
            "SELECT id, name, email FROM members WHERE trip_id = ? ORDER BY position",
            (trip_id,),
        )
        return [
            Member(id=row["id"], name=row["name"], email=row["email"])
            for row in cursor.fetchall()
        ]

    def remove_member(self, trip_id: str, member_id: str):
        """
        Remove a member from a trip.

        Raises:
            MemberNotFoundError: If the member isn't in the trip
            MemberInUseError: If an expense was paid by or is shared with the member
        """
        if member_id not in {member.id for member in self.get_members(trip_id)}:
            raise MemberNotFoundError(f"Member '{member_id}' not found in trip {trip_id}")

        referencing = [
            expense.id
            for expense in self.get_expenses(trip_id)
            if expense.references(member_id)
        ]
        if referencing:
            raise MemberInUseError(member_id, referencing)

        cursor = self.conn.cursor()
        cursor.execute(
            "DELETE FROM members WHERE trip_id = ? AND id = ?", (trip_id, member_id)
        )
        self.conn.commit()
        logger.info(f"Removed member {member_id} from trip {trip_id}")

    # ========================================================================
    # Expense operations
    # ========================================================================

    def save_expense(self, trip_id: str, expense: Expense):
        """Insert an expense, replacing any expense with the same id."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO expenses (trip_id, id, payload, expense_date, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(trip_id, id) DO UPDATE SET
                payload = excluded.payload,
                expense_date = excluded.expense_date
            """,
            (
                trip_id,
                expense.id,
                expense.model_dump_json(),
                expense.date.isoformat() if expense.date else None,
                (expense.created_at or datetime.now()).isoformat(),
            ),
        )
        self.conn.commit()
        logger.info(f"Saved expense {expense.id} in trip {trip_id}")

    def get_expenses(self, trip_id: str) -> list[Expense]:
        """Get a trip's expenses ordered by date, then creation time."""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            SELECT payload FROM expenses
            WHERE trip_id = ?
            ORDER BY COALESCE(expense_date, created_at), created_at, id
            """,
            (trip_id,),
        )
        return [Expense.model_validate_json(row["payload"]) for row in cursor.fetchall()]

    def delete_expense(self, trip_id: str, expense_id: str):
        """
        Delete an expense.

        Raises:
            ExpenseNotFoundError: If the expense doesn't exist
        """
        cursor = self.conn.cursor()
        cursor.execute(
            "DELETE FROM expenses WHERE trip_id = ? AND id = ?", (trip_id, expense_id)
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            raise ExpenseNotFoundError(
                f"Expense '{expense_id}' not found in trip {trip_id}"
            )
        logger.info(f"Deleted expense {expense_id} from trip {trip_id}")
