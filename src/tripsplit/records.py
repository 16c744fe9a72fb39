"""Conversion between remote-store documents and domain models.

Store documents carry the split rule as a `splitType` string plus a
`splitDetails` list whose fields depend on the type. This module turns
them into the tagged split models and back.
"""

import json
import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .exceptions import InvalidSplitError
from .models import (
    AmountEntry,
    AmountSplit,
    Comment,
    EqualSplit,
    Expense,
    Member,
    PercentageEntry,
    PercentageSplit,
)
from .money import from_minor_units, to_minor_units

logger = logging.getLogger(__name__)


class TripSnapshot(BaseModel):
    """Members and expenses of one trip, as exported from the store."""

    currency_code: str = "USD"
    members: list[Member] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)


def member_from_record(record: dict[str, Any]) -> Member:
    """Build a Member from a store document."""
    return Member(
        id=str(record["id"]),
        name=record["name"],
        email=record.get("email") or None,
    )


def member_to_record(member: Member) -> dict[str, Any]:
    """Convert a Member to a store document."""
    record: dict[str, Any] = {"id": member.id, "name": member.name}
    if member.email:
        record["email"] = member.email
    return record


def _timestamp(value: Any) -> datetime | str | None:
    """
    Normalize a document date to something the models accept.

    Dates arrive as datetimes, plain dates, ISO strings, or the remote
    store's timestamp wrapper ({"seconds": ..., "nanoseconds": ...}, or
    the underscored form the client SDK serializes).
    """
    if value is None or isinstance(value, (datetime, str)):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is not None:
            nanoseconds = value.get("nanoseconds", value.get("_nanoseconds")) or 0
            return datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(
                microseconds=nanoseconds // 1000
            )
    raise ValueError(f"Unrecognized date value: {value!r}")


def _money(value: Any, digits: int) -> Decimal:
    """Parse a document number and round it to the currency's minor unit."""
    return from_minor_units(to_minor_units(Decimal(str(value)), digits), digits)


def _split_from_record(
    record: dict[str, Any], digits: int = 2
) -> EqualSplit | AmountSplit | PercentageSplit:
    """Build the tagged split rule from splitType + splitDetails."""
    expense_id = record.get("id")
    split_type = record.get("splitType", "equally")
    details = record.get("splitDetails") or []
    member_ids = [str(detail["memberId"]) for detail in details]

    if split_type == "equally":
        return EqualSplit(participant_ids=tuple(member_ids))

    if split_type == "byAmount":
        if any(detail.get("amount") is None for detail in details):
            raise InvalidSplitError(
                f"Expense {expense_id}: every byAmount split detail needs an amount",
                expense_id=expense_id,
            )
        return AmountSplit(
            entries=tuple(
                AmountEntry(member_id=member_id, amount=_money(detail["amount"], digits))
                for member_id, detail in zip(member_ids, details)
            )
        )

    if split_type == "byPercentage":
        if any(detail.get("percentage") is None for detail in details):
            raise InvalidSplitError(
                f"Expense {expense_id}: every byPercentage split detail needs a percentage",
                expense_id=expense_id,
            )
        return PercentageSplit(
            entries=tuple(
                PercentageEntry(member_id=member_id, percentage=str(detail["percentage"]))
                for member_id, detail in zip(member_ids, details)
            )
        )

    raise InvalidSplitError(
        f"Expense {expense_id}: unknown split type '{split_type}'", expense_id=expense_id
    )


def _split_to_details(expense: Expense) -> list[dict[str, Any]]:
    split = expense.split
    if isinstance(split, EqualSplit):
        return [{"memberId": member_id} for member_id in split.participant_ids]
    if isinstance(split, AmountSplit):
        return [
            {"memberId": entry.member_id, "amount": float(entry.amount)}
            for entry in split.entries
        ]
    return [
        {"memberId": entry.member_id, "percentage": float(entry.percentage)}
        for entry in split.entries
    ]


def expense_from_record(record: dict[str, Any], digits: int = 2) -> Expense:
    """
    Build an Expense from a store document.

    Numbers go through str() so float document values keep their printed
    digits instead of their binary expansion, then are rounded to the
    currency's minor unit.

    Args:
        record: The store document
        digits: Digits in the trip currency's minor unit

    Raises:
        InvalidSplitError: If the split type or its details are malformed
        ValueError: If a date is in an unrecognized format
        pydantic.ValidationError: If required fields are missing or invalid
    """
    return Expense(
        id=str(record["id"]),
        description=record.get("description", ""),
        amount=_money(record["amount"], digits),
        paid_by_id=str(record["paidById"]),
        category=record.get("category") or "other",
        split=_split_from_record(record, digits),
        date=_timestamp(record.get("date")),
        created_at=_timestamp(record.get("createdAt")),
        comments=tuple(
            Comment(
                member_id=str(comment.get("memberId", "")),
                text=comment.get("text", ""),
                created_at=_timestamp(comment.get("createdAt")),
            )
            for comment in record.get("comments") or []
        ),
        receipt_image_uri=record.get("receiptImageUri"),
    )


def expense_to_record(expense: Expense) -> dict[str, Any]:
    """Convert an Expense to a store document."""

    def _iso(value: datetime | None) -> str | None:
        return value.isoformat() if value else None

    record: dict[str, Any] = {
        "id": expense.id,
        "description": expense.description,
        "amount": float(expense.amount),
        "paidById": expense.paid_by_id,
        "category": expense.category,
        "splitType": expense.split.kind,
        "splitDetails": _split_to_details(expense),
        "date": _iso(expense.date),
        "createdAt": _iso(expense.created_at),
        "comments": [
            {
                "memberId": comment.member_id,
                "text": comment.text,
                "createdAt": _iso(comment.created_at),
            }
            for comment in expense.comments
        ],
    }
    if expense.receipt_image_uri:
        record["receiptImageUri"] = expense.receipt_image_uri
    return record


def load_snapshot(path: Path, digits: int = 2) -> TripSnapshot:
    """
    Load a trip snapshot from a JSON export.

    Expected shape:
        {"currency": "USD", "members": [...], "expenses": [...]}

    Args:
        path: Path to the JSON file
        digits: Digits in the trip currency's minor unit

    Returns:
        The parsed snapshot
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    snapshot = TripSnapshot(
        currency_code=data.get("currency", "USD"),
        members=[member_from_record(record) for record in data.get("members", [])],
        expenses=[
            expense_from_record(record, digits) for record in data.get("expenses", [])
        ],
    )

    logger.info(
        f"Loaded snapshot from {path}: {len(snapshot.members)} members, "
        f"{len(snapshot.expenses)} expenses"
    )
    return snapshot


def save_snapshot(snapshot: TripSnapshot, path: Path):
    """Write a trip snapshot as a JSON export readable by load_snapshot."""
    data = {
        "currency": snapshot.currency_code,
        "members": [member_to_record(member) for member in snapshot.members],
        "expenses": [expense_to_record(expense) for expense in snapshot.expenses],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info(
        f"Saved snapshot to {path}: {len(snapshot.members)} members, "
        f"{len(snapshot.expenses)} expenses"
    )
