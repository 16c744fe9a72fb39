"""Custom exceptions for TripSplit."""


class TripSplitError(Exception):
    """Base exception for all TripSplit errors."""

    pass


class ConfigurationError(TripSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class UnknownMemberError(TripSplitError):
    """Raised when an expense references a member missing from the roster."""

    def __init__(
        self, member_id: str, expense_id: str | None = None, message: str | None = None
    ):
        self.member_id = member_id
        self.expense_id = expense_id
        where = f" in expense {expense_id}" if expense_id else ""
        super().__init__(message or f"Unknown member '{member_id}'{where}")


class InvalidSplitError(TripSplitError):
    """Raised when split amounts or percentages don't reconcile with the total."""

    def __init__(self, message: str, expense_id: str | None = None):
        self.expense_id = expense_id
        super().__init__(message)


class EmptySplitError(InvalidSplitError):
    """Raised when an expense has no split participants."""

    def __init__(self, expense_id: str | None = None, message: str | None = None):
        super().__init__(
            message or f"Expense {expense_id} has no split participants",
            expense_id=expense_id,
        )


class InvalidRosterError(TripSplitError):
    """Raised when the member roster lists the same id more than once."""

    pass


class UnbalancedLedgerError(TripSplitError):
    """Raised when net balances don't sum to zero."""

    def __init__(self, residual_units: int, message: str | None = None):
        self.residual_units = residual_units
        super().__init__(
            message
            or f"Net balances do not sum to zero (residual: {residual_units} minor units)"
        )


class StoreError(TripSplitError):
    """Base class for trip store errors."""

    pass


class MemberNotFoundError(StoreError):
    """Raised when a member doesn't exist in the trip."""

    pass


class MemberInUseError(StoreError):
    """Raised when removing a member that is referenced by an expense."""

    def __init__(self, member_id: str, expense_ids: list[str]):
        self.member_id = member_id
        self.expense_ids = expense_ids
        super().__init__(
            f"Member '{member_id}' is referenced by {len(expense_ids)} "
            f"expense(s): {', '.join(expense_ids)}"
        )


class ExpenseNotFoundError(StoreError):
    """Raised when an expense doesn't exist in the trip."""

    pass
