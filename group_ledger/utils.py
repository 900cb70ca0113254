"""
Utilities Module

This module provides the numeric helpers shared by the ledger engine.

Features:
    - Decimal-safe parsing of user-entered amounts
    - Round-half-up rounding to 2 decimal places
    - Tolerance comparisons for reconciling split totals

Functions:
    to_decimal: Parse a value into a finite Decimal or raise.
    parse_raw_value: Parse a form value, falling back to zero.
    round_decimal: Round a Decimal to 2 places as a Decimal.
    round_float: Round a Decimal to 2 places and convert to float.
    within_tolerance: Compare two Decimals within the ledger tolerance.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


# Tolerance for reconciling totals and ignoring rounding residue
EPSILON = Decimal("0.01")

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """
    Convert a value to a finite Decimal.

    Floats go through str() so that 0.1 becomes Decimal("0.1") rather
    than its binary expansion.

    Args:
        value: int, float, str or Decimal.

    Returns:
        Decimal: The parsed value.

    Raises:
        ValueError: If the value is not numeric, is a bool, or is NaN/infinite.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValueError(f"not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


def parse_raw_value(value) -> Decimal:
    """
    Parse a per-member split value, treating missing or unparseable input as zero.

    Mirrors how a blank form field is read: "" or None or "abc" all count as 0.
    """
    if value is None:
        return Decimal("0")
    try:
        return to_decimal(value)
    except ValueError:
        return Decimal("0")


def round_decimal(value: Decimal) -> Decimal:
    """Round a Decimal to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_float(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(round_decimal(value))


def within_tolerance(a: Decimal, b: Decimal, tolerance: Decimal = EPSILON) -> bool:
    """Return True if |a - b| <= tolerance."""
    return abs(a - b) <= tolerance
