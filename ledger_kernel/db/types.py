"""
Module: ledger_kernel.db.types
Responsibility: Money conversion and rounding helpers for financial-grade
    amounts.  Centralizes precision and money conversion so that every
    model, validator and request parser uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

CRITICAL: No floats anywhere in the ledger kernel.  All monetary amounts
use Decimal.  Floats arriving from JSON are converted through their shortest
string representation, so 100.1 becomes Decimal("100.1"), never
Decimal("100.099999999999994315658113919198513031005859375").
"""

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any

MONEY_PRECISION = 38
MONEY_DECIMAL_PLACES = 9
MONEY_INTEGER_DIGITS = MONEY_PRECISION - MONEY_DECIMAL_PLACES
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")

# Sums of Numeric(38, 9) amounts must not round at the default 28 digits
MONEY_CONTEXT = Context(prec=2 * MONEY_PRECISION, rounding=DEFAULT_ROUNDING)


def money_from_value(value: Any) -> Decimal:
    """
    Convert an incoming amount to Decimal.

    Accepts Decimal, int, float (via str) and numeric strings.  ``None``
    becomes zero, matching the "missing debit/credit defaults to 0" rule.

    Raises:
        ValueError: If the value is not numeric, is a bool, or is NaN/Infinity.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Amount must be numeric, not {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        if not value.strip():
            return ZERO
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Amount is not a number: {value!r}") from exc
    else:
        raise ValueError(f"Amount must be numeric, not {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def check_money_precision(value: Decimal) -> Decimal:
    """
    Ensure an amount fits Numeric(38, 9) without rounding.

    Trailing zeros beyond the ninth decimal place are allowed
    (Decimal("1.50000000000") is fine); any other digit there is not.

    Raises:
        ValueError: Too many decimal places or integer digits.
    """
    _, digits, exponent = value.as_tuple()
    extra_places = -exponent - MONEY_DECIMAL_PLACES
    if extra_places > 0 and any(digits[-extra_places:]):
        raise ValueError(
            f"Amount has more than {MONEY_DECIMAL_PLACES} decimal places: {value}"
        )
    if value and value.adjusted() >= MONEY_INTEGER_DIGITS:
        raise ValueError(
            f"Amount has more than {MONEY_INTEGER_DIGITS} integer digits: {value}"
        )
    return value


def round_money(
    value: Decimal,
    decimal_places: int = 2,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    Used for display and JSON output only; stored amounts keep full precision.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def format_money(value: Decimal, min_places: int = 2) -> str:
    """
    Render an amount for JSON output without losing precision.

    At least ``min_places`` decimals are shown; more only when the value
    actually carries them (Decimal("500.000000000") -> "500.00",
    Decimal("0.125") -> "0.125").
    """
    normalized = value.normalize()
    if normalized.as_tuple().exponent >= -min_places:
        return str(round_money(value, min_places))
    return format(normalized, "f")
