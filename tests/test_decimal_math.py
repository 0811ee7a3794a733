"""Tests for decimal arithmetic primitives.

Covers:
- Conversion and rejection of non-finite values
- Half-even rounding and precision bounds
- Half-up division and division by zero
- Exact multiplication and summation
- Tolerance comparisons
"""
from __future__ import annotations

from decimal import Decimal, localcontext

import pytest

from common.decimal_math import (
    ALLOCATION_ROUNDING,
    QUANTITY_ROUNDING,
    divide,
    equals,
    multiply,
    round_decimal,
    sum_decimals,
    to_decimal,
    verify_total_accuracy,
)
from common.errors import DivisionByZeroError, InvalidNumberError, InvalidPrecisionError


class TestToDecimal:
    """Tests for to_decimal conversion."""

    def test_float_uses_shortest_repr(self):
        """0.1 should become exactly Decimal('0.1'), not the binary expansion."""
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(0.6) * 100 == Decimal("60.0")

    def test_int_str_and_decimal_pass_through(self):
        assert to_decimal(3) == Decimal(3)
        assert to_decimal("12.345") == Decimal("12.345")
        d = Decimal("7.5")
        assert to_decimal(d) is d

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf"), "NaN", "Infinity"])
    def test_non_finite_rejected(self, bad):
        """NaN and infinities should raise InvalidNumberError."""
        with pytest.raises(InvalidNumberError) as exc:
            to_decimal(bad)
        assert exc.value.code == "INVALID_NUMBER"

    @pytest.mark.parametrize("bad", ["abc", "", None, True])
    def test_unparseable_rejected(self, bad):
        with pytest.raises(InvalidNumberError):
            to_decimal(bad)

    def test_context_in_message(self):
        """The optional context should appear in the error message."""
        with pytest.raises(InvalidNumberError, match="weight for AAPL"):
            to_decimal(float("nan"), "weight for AAPL")

    def test_invalid_number_is_value_error(self):
        with pytest.raises(ValueError):
            to_decimal(float("nan"))


class TestRound:
    """Tests for half-even rounding."""

    def test_round_to_two_places(self):
        assert round_decimal(0.6666, 2) == Decimal("0.67")
        assert round_decimal(0.6666, 3) == Decimal("0.667")
        assert round_decimal(0.6666, 4) == Decimal("0.6666")

    def test_ties_round_to_even(self):
        """Ties go to the even neighbour (banker's rounding)."""
        assert round_decimal(0.5, 0) == Decimal("0")
        assert round_decimal(1.5, 0) == Decimal("2")
        assert round_decimal(2.5, 0) == Decimal("2")
        assert round_decimal("0.125", 2) == Decimal("0.12")
        assert round_decimal("0.375", 2) == Decimal("0.38")

    def test_tiny_value_rounds_to_zero(self):
        assert round_decimal(0.0001, 2) == 0

    def test_result_has_requested_exponent(self):
        assert round_decimal(60, 2).as_tuple().exponent == -2

    @pytest.mark.parametrize("precision", [-1, 29, 100])
    def test_precision_out_of_range(self, precision):
        with pytest.raises(InvalidPrecisionError) as exc:
            round_decimal(1, precision)
        assert exc.value.code == "INVALID_PRECISION"

    def test_precision_bounds_inclusive(self):
        assert round_decimal("1.23", 0) == Decimal("1")
        assert round_decimal("1.23", 28) == Decimal("1.23")

    def test_non_integer_precision_rejected(self):
        with pytest.raises(InvalidPrecisionError):
            round_decimal(1, 2.5)  # type: ignore[arg-type]


class TestDivide:
    """Tests for half-up division."""

    def test_default_precision_is_ten(self):
        assert divide(1, 3) == Decimal("0.3333333333")

    def test_ties_round_half_up(self):
        """Quantities round ties away from zero, unlike round_decimal."""
        assert divide(1, 8, 2) == Decimal("0.13")
        assert round_decimal(divide(1, 8, 3), 2) == Decimal("0.12")
        assert divide(-1, 8, 2) == Decimal("-0.13")

    def test_rounding_modes_differ(self):
        assert ALLOCATION_ROUNDING != QUANTITY_ROUNDING

    def test_simple_quotients(self):
        assert divide(60, 100, 3) == Decimal("0.6")
        assert divide(100, 150, 2) == Decimal("0.67")
        assert divide(500, 100, 0) == Decimal("5")

    def test_division_by_zero(self):
        with pytest.raises(DivisionByZeroError) as exc:
            divide(10, 0)
        assert exc.value.code == "DIVISION_BY_ZERO"

    def test_division_by_zero_is_zero_division_error(self):
        with pytest.raises(ZeroDivisionError):
            divide(10, Decimal("0.000"))

    def test_precision_checked(self):
        with pytest.raises(InvalidPrecisionError):
            divide(1, 3, 29)


class TestMultiplyAndSum:
    """Tests for exact multiplication and summation."""

    def test_multiply_no_float_drift(self):
        assert multiply(0.1, 3) == Decimal("0.3")
        assert multiply(100, 0.6) == Decimal("60")

    def test_multiply_is_exact_beyond_default_context(self):
        """Products wider than 28 digits should not be rounded."""
        a, b = "1234567890.123456789", "9876543210.987654321"
        result = multiply(a, b)
        with localcontext() as ctx:
            ctx.prec = 200
            expected = Decimal(a) * Decimal(b)
        assert result == expected
        assert len(result.as_tuple().digits) > 28

    def test_sum_no_float_drift(self):
        assert sum_decimals(0.1, 0.2) == Decimal("0.3")
        assert sum_decimals("33.33", "33.33", "33.34") == Decimal("100.00")

    def test_sum_of_nothing_is_zero(self):
        assert sum_decimals() == 0

    def test_sum_rejects_nan(self):
        with pytest.raises(InvalidNumberError):
            sum_decimals(1, float("nan"))


class TestEquals:
    """Tests for tolerance comparisons."""

    def test_default_tolerance(self):
        assert equals(1, 1.00005)
        assert equals(1, 1.0001)  # boundary inclusive
        assert not equals(1, 1.0002)

    def test_custom_tolerance(self):
        assert equals(10, 10.4, tolerance=0.5)
        assert not equals(10, 10.6, tolerance=0.5)

    def test_verify_total_accuracy_uses_cent_tolerance(self):
        assert verify_total_accuracy(99.99, 100)
        assert verify_total_accuracy(100.01, 100)
        assert not verify_total_accuracy(99.98, 100)


class TestLargeValues:
    """Values whose exact result needs more than the base working precision."""

    def test_round_large_value_at_max_precision(self):
        result = round_decimal(Decimal("1e80"), 28)

        assert result == Decimal("1e80")
        assert result.as_tuple().exponent == -28

    def test_divide_large_quotient_at_max_precision(self):
        result = divide(Decimal("5e79"), 100, 28)

        assert result == Decimal("5e77")
        assert result.as_tuple().exponent == -28

    def test_divide_large_quotient_still_rounds_half_up(self):
        """(10**101 + 4) / 8 ends in .5 and rounds up in the last digit."""
        dividend = Decimal("1" + "0" * 100 + "4")

        assert divide(dividend, 8, 0) == Decimal("125" + "0" * 97 + "1")

    def test_sum_keeps_every_digit(self):
        small = Decimal("1e-28")

        total = sum_decimals(Decimal("1e80"), small)

        assert total - Decimal("1e80") == small

    def test_equals_on_large_values(self):
        assert not equals(Decimal("1e80"), Decimal("1" + "0" * 80 + ".001"))

