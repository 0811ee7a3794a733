"""Tests for request validation rules and their order."""
from __future__ import annotations

from decimal import Decimal

import pytest

from common.errors import InvalidNumberError, OrderValidationError
from policy.order_validation import validate_order_request, validate_portfolio
from portfolio.order import OrderRequest
from portfolio.portfolio_item import PortfolioItem


def items(*pairs):
    return [PortfolioItem.of(*p) for p in pairs]


def request(order_type="BUY", total=100, portfolio=None) -> OrderRequest:
    if portfolio is None:
        portfolio = items(("AAPL", 0.6), ("TSLA", 0.4))
    return OrderRequest(order_type=order_type, total_amount=total, portfolio=portfolio)


def code_of(fn, *args) -> str:
    with pytest.raises(OrderValidationError) as exc:
        fn(*args)
    return exc.value.code


class TestValidatePortfolio:
    """Tests for portfolio-level rules."""

    def test_valid_portfolio_passes(self):
        validate_portfolio(items(("AAPL", 0.6), ("TSLA", 0.4)))

    def test_empty(self):
        assert code_of(validate_portfolio, []) == "EMPTY_PORTFOLIO"

    def test_empty_symbol(self):
        with pytest.raises(OrderValidationError) as exc:
            validate_portfolio(items(("AAPL", 0.5), ("  ", 0.5)))
        assert exc.value.code == "EMPTY_SYMBOL"
        assert exc.value.message == "Symbol cannot be empty at portfolio index 1"

    def test_negative_weight(self):
        assert code_of(validate_portfolio, items(("AAPL", 1.5), ("TSLA", -0.5))) == "NEGATIVE_WEIGHT"

    def test_non_positive_price_override(self):
        with pytest.raises(OrderValidationError) as exc:
            validate_portfolio(items(("AAPL", 1, 0)))
        assert exc.value.code == "INVALID_PRICE"
        assert exc.value.message == "Price must be greater than 0 for symbol AAPL"

    def test_weight_sum(self):
        with pytest.raises(OrderValidationError) as exc:
            validate_portfolio(items(("AAPL", 0.5), ("TSLA", 0.3)))
        assert exc.value.code == "INVALID_WEIGHT_SUM"
        assert exc.value.message == "Portfolio weights must sum to 1. Current sum: 0.8000"

    def test_weight_sum_within_tolerance(self):
        validate_portfolio(items(("A", "0.33333"), ("B", "0.33333"), ("C", "0.33333")))

    def test_weight_sum_custom_tolerance(self):
        portfolio = items(("A", "0.99"))
        assert code_of(validate_portfolio, portfolio) == "INVALID_WEIGHT_SUM"
        validate_portfolio(portfolio, Decimal("0.01"))

    def test_duplicate_symbols(self):
        assert code_of(validate_portfolio, items(("AAPL", 0.5), ("AAPL", 0.5))) == "DUPLICATE_SYMBOLS"

    def test_zero_weight_allowed(self):
        validate_portfolio(items(("AAPL", 0), ("TSLA", 1)))

    def test_rules_checked_in_order(self):
        """Empty symbol is reported before the weight-sum failure."""
        assert code_of(validate_portfolio, items(("", 0.1), ("B", 0.1))) == "EMPTY_SYMBOL"


class TestValidateOrderRequest:
    """Tests for request-level rules."""

    def test_valid_request_passes(self):
        validate_order_request(request())
        validate_order_request(request("SELL"))

    def test_unknown_order_type(self):
        assert code_of(validate_order_request, request("HOLD")) == "INVALID_ORDER_TYPE"

    def test_order_type_is_case_sensitive(self):
        assert code_of(validate_order_request, request("buy")) == "INVALID_ORDER_TYPE"

    @pytest.mark.parametrize("total", [0, -10])
    def test_non_positive_amount(self, total):
        with pytest.raises(OrderValidationError) as exc:
            validate_order_request(request(total=total))
        assert exc.value.code == "INVALID_AMOUNT"
        assert exc.value.message == "Total amount must be greater than 0"

    def test_portfolio_checked_before_amount(self):
        assert code_of(validate_order_request, request(total=0, portfolio=[])) == "EMPTY_PORTFOLIO"

    def test_non_numeric_amount(self):
        with pytest.raises(InvalidNumberError):
            validate_order_request(request(total="lots"))
