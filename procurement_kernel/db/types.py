"""
Module: procurement_kernel.db.types
Responsibility: Money and percent precision constants plus the conversion and
    rounding helpers used by every pricing calculation.
Architecture position: Kernel > DB.  May be imported by domain/, services/,
    selectors/ and modules.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere.  to_decimal() rejects float input outright.
    - round_money() is the ONLY sanctioned rounding function.  Stored amounts
      are quantized to MONEY_DECIMAL_PLACES; display amounts to
      DISPLAY_DECIMAL_PLACES.

Failure modes:
    - ValidationError on float, bool or non-numeric input to to_decimal().
    - ValidationError when a value has too many integer digits to be held
      at stored precision (input or computed).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from procurement_kernel.exceptions import ValidationError

# Stored precision: 9 decimal places
MONEY_DECIMAL_PLACES = 9

# What a human sees on a document
DISPLAY_DECIMAL_PLACES = 2

DEFAULT_ROUNDING = ROUND_HALF_UP

# Integer digits that still quantize to MONEY_DECIMAL_PLACES within the
# default 28-digit context
MAX_INTEGER_DIGITS = 28 - MONEY_DECIMAL_PLACES

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Convert boundary input to Decimal.

    Accepts Decimal, int and numeric strings.  Floats are rejected because
    their binary representation has already lost precision.

    Raises:
        ValidationError: If value is a float, bool, None or not numeric.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None or isinstance(value, float):
        raise ValidationError(field, f"expected a decimal value, got {type(value).__name__}")
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValidationError(field, f"not a number: {value!r}") from exc
    else:
        raise ValidationError(field, f"expected a decimal value, got {type(value).__name__}")
    if not result.is_finite():
        raise ValidationError(field, "must be a finite number")
    if result and result.adjusted() >= MAX_INTEGER_DIGITS:
        raise ValidationError(field, "amount out of range")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = DISPLAY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the ONLY sanctioned rounding function for money.  All other code
    delegates rounding here so precision is handled identically everywhere.
    """
    quantum = Decimal(1).scaleb(-decimal_places)
    try:
        return value.quantize(quantum, rounding=rounding)
    except InvalidOperation as exc:
        raise ValidationError("amount", "amount out of range") from exc


def store_money(value: Decimal) -> Decimal:
    """Quantize to stored precision."""
    return round_money(value, MONEY_DECIMAL_PLACES)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """``amount * percent / 100`` at full precision (no rounding)."""
    return amount * percent / HUNDRED
