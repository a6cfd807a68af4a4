"""
Money Handling Module

Decimal coercion and presentation rounding for ledger amounts. Amounts are
accumulated at full precision; rounding to cents happens only for display.
NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Any, Iterable
import re

from .errors import InvalidInputError

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')
HUNDRED = Decimal('100')

_AMOUNT_PATTERN = re.compile(r'^(?P<sign>[+-])?\s*\$?\s*(?P<number>[\d,]*\.?\d+|\d[\d,]*\.)$')
_GROUPED_PATTERN = re.compile(r'^\d{1,3}(,\d{3})+(\.\d*)?$')


def to_decimal(value: Any, field: str, minimum: Decimal = None, strict: bool = False) -> Decimal:
    """
    Convert a snapshot value to Decimal, rejecting anything non-numeric

    Args:
        value: int, str, float or Decimal
        field: Field name reported on failure
        minimum: Lowest accepted value (inclusive unless strict)
        strict: If True, value must be strictly greater than minimum

    Returns:
        Decimal value

    Raises:
        InvalidInputError: If value is missing, non-numeric, not finite or
            below the minimum
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError(field, "a numeric amount is required", value)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = decimal_from_string(value, field)
    else:
        raise InvalidInputError(field, f"unsupported type {type(value).__name__}", value)

    if not result.is_finite():
        raise InvalidInputError(field, "must be a finite number", value)

    if minimum is not None:
        if strict and result <= minimum:
            raise InvalidInputError(field, f"must be greater than {minimum}", value)
        if not strict and result < minimum:
            raise InvalidInputError(field, f"must be at least {minimum}", value)

    return result


def decimal_from_string(value: str, field: str = "amount") -> Decimal:
    """
    Safely convert string to Decimal

    Accepts an optional sign and leading "$", and commas only as thousands
    separators in the "1,234.56" layout. Exponents, letters and decimal
    commas are rejected rather than guessed at.

    Args:
        value: String representation of number, e.g. "$1,234.50" or "-3"
        field: Field name reported on failure

    Returns:
        Decimal value

    Raises:
        InvalidInputError: If string cannot be converted to valid Decimal
    """
    if not value or not value.strip():
        raise InvalidInputError(field, "value must be a non-empty string", value)

    match = _AMOUNT_PATTERN.match(value.strip())
    if not match:
        raise InvalidInputError(field, f"cannot convert '{value}' to Decimal", value)

    sign, number = match.group('sign') or '', match.group('number')
    if ',' in number:
        if not _GROUPED_PATTERN.match(number):
            raise InvalidInputError(field, f"ambiguous separators in '{value}'", value)
        number = number.replace(',', '')

    try:
        return Decimal(sign + number)
    except InvalidOperation:
        raise InvalidInputError(field, f"cannot convert '{value}' to Decimal", value)


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Sum Decimals starting from an exact zero"""
    return sum(amounts, ZERO)


def percentage_of(amount: Decimal, rate: Decimal) -> Decimal:
    """Apply a percentage rate (10 means 10 %)"""
    return amount * rate / HUNDRED


def round_display(value: Decimal, precision: int = 2) -> Decimal:
    """Round to display precision (presentation only)"""
    return value.quantize(Decimal('0.1') ** precision, rounding=ROUND_HALF_UP)


def format_money(value: Decimal, precision: int = 2) -> str:
    """Format for display, e.g. $1,234.50 or -$3.00"""
    rounded = round_display(value, precision)
    sign = "-" if rounded < ZERO else ""
    return f"{sign}${abs(rounded):,.{precision}f}"
