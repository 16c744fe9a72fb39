"""Fixed-point currency helpers.

All engine arithmetic happens on integer minor units (cents for USD, whole
units for JPY). Amounts are only exposed as Decimal at the boundary.
"""

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Currency(BaseModel):
    """A currency and the number of digits in its minor unit."""

    model_config = ConfigDict(frozen=True)

    code: str = "USD"
    minor_unit_digits: int = Field(default=2, ge=0, le=4)

    def to_units(self, amount: Decimal) -> int:
        """Convert a Decimal amount to integer minor units."""
        return to_minor_units(amount, self.minor_unit_digits)

    def from_units(self, units: int) -> Decimal:
        """Convert integer minor units back to a Decimal amount."""
        return from_minor_units(units, self.minor_unit_digits)

    def format(self, amount: Decimal) -> str:
        """Format an amount with the currency's precision, e.g. '12.50 USD'."""
        return f"{amount:,.{self.minor_unit_digits}f} {self.code}"


DEFAULT_CURRENCY = Currency()


def to_minor_units(amount: Decimal, digits: int = 2) -> int:
    """
    Convert a Decimal amount to integer minor units.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Amount as Decimal
        digits: Digits in the currency's minor unit

    Returns:
        Amount in minor units (integer)
    """
    scaled = Decimal(amount).scaleb(digits)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(units: int, digits: int = 2) -> Decimal:
    """Convert integer minor units to a Decimal quantized to the currency exponent."""
    return Decimal(units).scaleb(-digits).quantize(Decimal(1).scaleb(-digits))


def largest_key(amounts: Mapping[str, int]) -> str:
    """Key of the largest absolute amount, ties broken by ascending key."""
    return min(amounts, key=lambda key: (-abs(amounts[key]), key))


def absorb_residual(shares: dict[str, int], target: int) -> dict[str, int]:
    """
    Make shares sum exactly to target by adjusting the largest share.

    Adjusting the largest share minimizes the relative error of the
    correction. The input is not modified.

    Args:
        shares: Member id -> share in minor units
        target: The total the shares must add up to

    Returns:
        A new mapping with the same keys and order
    """
    adjusted = dict(shares)
    residual = target - sum(adjusted.values())
    if residual != 0 and adjusted:
        key = largest_key(adjusted)
        adjusted[key] += residual
        logger.info(f"Applied rounding adjustment: {residual} minor units to {key}")
    return adjusted
