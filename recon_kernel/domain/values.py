"""
Monetary value helpers.

Amounts cross the storage boundary as decimal strings and live in memory
as ``Decimal``. No floats anywhere: equality is decided by the business
tolerance (0.01 by default), never by binary representation.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

MONEY_DECIMAL_PLACES = 2
DEFAULT_TOLERANCE = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value: Any) -> Decimal:
    """
    Coerce a stored amount (str, int, Decimal or None) to Decimal.

    ``None`` and empty strings read as zero, matching how unset amount
    columns are treated by the CRUD layer.

    Raises:
        ValueError: If the value is not a valid number.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Go through repr so 0.1 becomes Decimal("0.1"), not the binary expansion
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc


def round_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """Round a monetary value half-up to the given decimal places."""
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    """Render an amount as the decimal string stored by the CRUD layer."""
    return str(round_money(value))


def amounts_match(
    left: Decimal,
    right: Decimal,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> bool:
    """True when ``|left - right| <= tolerance``."""
    return abs(left - right) <= tolerance


def expected_remaining(total_amount: Decimal, paid_amount: Decimal) -> Decimal:
    """Remaining balance implied by the account totals: ``max(0, total - paid)``."""
    return max(ZERO, total_amount - paid_amount)
