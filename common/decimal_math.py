"""Decimal arithmetic for money and share quantities.

All money math goes through these helpers so binary floating point never
enters an allocation. Floats are converted through their shortest ``repr``
(``0.1`` becomes ``Decimal("0.1")``, not the binary expansion).

Rounding is asymmetric on purpose:
- ``round_decimal`` uses ROUND_HALF_EVEN (intermediate cent allocations).
- ``divide`` uses ROUND_HALF_UP (share quantities).
"""
from __future__ import annotations

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)
from typing import Union

import structlog

from common.errors import DivisionByZeroError, InvalidNumberError, InvalidPrecisionError

log = structlog.get_logger(__name__)

Number = Union[int, float, str, Decimal]

MIN_PRECISION = 0
MAX_PRECISION = 28
MONEY_PLACES = 2
DEFAULT_DIVIDE_PRECISION = 10
DEFAULT_TOLERANCE = Decimal("0.0001")
CURRENCY_TOLERANCE = Decimal("0.01")

ALLOCATION_ROUNDING = ROUND_HALF_EVEN
QUANTITY_ROUNDING = ROUND_HALF_UP

# Floor for working precision; contexts grow past it to fit the operands.
_WORKING_PREC = 100
_EXACT = Context(prec=_WORKING_PREC, rounding=ROUND_HALF_EVEN, traps=[InvalidOperation, DivisionByZero, Overflow])
# Truncating division keeps the later half-up quantize exact at ties.
_TRUNCATING = Context(prec=_WORKING_PREC, rounding=ROUND_DOWN, traps=[InvalidOperation, DivisionByZero, Overflow])


def to_decimal(value: Number, context: str | None = None) -> Decimal:
    """Convert ``value`` to a finite Decimal or raise InvalidNumberError."""
    if isinstance(value, Decimal):
        dec = value
    else:
        if isinstance(value, bool):
            raise InvalidNumberError(_invalid_msg(value, context))
        try:
            dec = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
        except (InvalidOperation, TypeError, ValueError) as e:
            log.error("decimal.conversion_failed", value=repr(value), context=context)
            raise InvalidNumberError(_invalid_msg(value, context)) from e

    if not dec.is_finite():
        log.error("decimal.conversion_failed", value=repr(value), context=context)
        raise InvalidNumberError(_invalid_msg(value, context))
    return dec


def _invalid_msg(value: object, context: str | None) -> str:
    suffix = f" ({context})" if context else ""
    return f"Invalid number: {value!r}{suffix}"


def check_precision(precision: int) -> None:
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise InvalidPrecisionError(f"Precision must be an integer, got {precision!r}")
    if precision < MIN_PRECISION or precision > MAX_PRECISION:
        raise InvalidPrecisionError(
            f"Precision must be between {MIN_PRECISION} and {MAX_PRECISION}, got {precision}"
        )


def _quantum(precision: int) -> Decimal:
    return Decimal(1).scaleb(-precision)


def _sized(base: Context, *values: Decimal, places: int = 0) -> Context:
    # Enough digits to hold every value and the sum of them at ``places``.
    top = max(v.adjusted() for v in values)
    bottom = min([v.as_tuple().exponent for v in values] + [-places])
    ctx = base.copy()
    ctx.prec = max(_WORKING_PREC, top - bottom + 2)
    return ctx


def _quantize(value: Decimal, precision: int, rounding: str) -> Decimal:
    ctx = _sized(_EXACT, value, places=precision)
    try:
        return value.quantize(_quantum(precision), rounding=rounding, context=ctx)
    except (InvalidOperation, Overflow) as e:
        raise InvalidNumberError(f"Cannot represent {value} at {precision} decimal places") from e


def round_decimal(value: Number, precision: int) -> Decimal:
    """Round half-to-even to ``precision`` decimal places (0-28)."""
    check_precision(precision)
    return _quantize(to_decimal(value), precision, ALLOCATION_ROUNDING)


def multiply(a: Number, b: Number) -> Decimal:
    """Exact product; the context is sized to the operands so nothing rounds."""
    da = to_decimal(a)
    db = to_decimal(b)
    digits = len(da.as_tuple().digits) + len(db.as_tuple().digits)
    ctx = _EXACT.copy()
    ctx.prec = max(_WORKING_PREC, digits)
    return ctx.multiply(da, db)


def divide(dividend: Number, divisor: Number, precision: int = DEFAULT_DIVIDE_PRECISION) -> Decimal:
    """Quotient rounded half-up to ``precision`` places."""
    check_precision(precision)
    num = to_decimal(dividend)
    den = to_decimal(divisor)
    if den.is_zero():
        raise DivisionByZeroError("Division by zero")
    ctx = _TRUNCATING.copy()
    ctx.prec = max(_WORKING_PREC, num.adjusted() - den.adjusted() + precision + 3)
    quotient = ctx.divide(num, den)
    return _quantize(quotient, precision, QUANTITY_ROUNDING)


def sum_decimals(*values: Number) -> Decimal:
    """Left-fold addition with no intermediate rounding."""
    total = Decimal(0)
    for v in values:
        dec = to_decimal(v)
        total = _sized(_EXACT, total, dec).add(total, dec)
    return total


def equals(a: Number, b: Number, tolerance: Number = DEFAULT_TOLERANCE) -> bool:
    diff = subtract(a, b).copy_abs()
    return diff <= to_decimal(tolerance)


def verify_total_accuracy(
    accumulated: Number,
    expected: Number,
    tolerance: Number = CURRENCY_TOLERANCE,
) -> bool:
    """Check an allocated sum against the requested total at cent tolerance."""
    return equals(accumulated, expected, tolerance)


def subtract(a: Number, b: Number) -> Decimal:
    da = to_decimal(a)
    db = to_decimal(b)
    return _sized(_EXACT, da, db).subtract(da, db)
