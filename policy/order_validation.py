"""Request validation run before a portfolio reaches the allocation engine.

Rules are checked in a fixed order and the first failure is raised as an
OrderValidationError whose ``code`` names the rule.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Sequence

import structlog

from common.decimal_math import DEFAULT_TOLERANCE, Number, equals, sum_decimals, to_decimal
from common.errors import OrderValidationError
from portfolio.order import ORDER_TYPES, OrderRequest
from portfolio.portfolio_item import PortfolioItem

log = structlog.get_logger(__name__)


def validate_portfolio(items: Sequence[PortfolioItem], tolerance: Number = DEFAULT_TOLERANCE) -> None:
    """Validate portfolio structure and weight sum.

    Checks:
    - Portfolio is non-empty
    - Every symbol is non-empty
    - No negative weights
    - Price overrides, when given, are > 0
    - Weights sum to 1 within ``tolerance``
    - No duplicate symbols
    """
    if not items:
        log.error("validation.failed", code="EMPTY_PORTFOLIO")
        raise OrderValidationError("Model portfolio cannot be empty", "EMPTY_PORTFOLIO")

    for i, item in enumerate(items):
        if not item.symbol or not item.symbol.strip():
            log.error("validation.failed", code="EMPTY_SYMBOL", index=i)
            raise OrderValidationError(f"Symbol cannot be empty at portfolio index {i}", "EMPTY_SYMBOL")

        if item.weight < 0:
            log.error("validation.failed", code="NEGATIVE_WEIGHT", symbol=item.symbol)
            raise OrderValidationError(
                f"Weight cannot be negative for symbol {item.symbol}", "NEGATIVE_WEIGHT"
            )

        if item.price is not None and item.price <= 0:
            log.error("validation.failed", code="INVALID_PRICE", symbol=item.symbol)
            raise OrderValidationError(
                f"Price must be greater than 0 for symbol {item.symbol}", "INVALID_PRICE"
            )

    total_weight = sum_decimals(*(item.weight for item in items))
    if not equals(total_weight, Decimal(1), tolerance):
        log.error("validation.failed", code="INVALID_WEIGHT_SUM", weight_sum=str(total_weight))
        raise OrderValidationError(
            f"Portfolio weights must sum to 1. Current sum: {total_weight:.4f}", "INVALID_WEIGHT_SUM"
        )

    symbols = [item.symbol for item in items]
    if len(symbols) != len(set(symbols)):
        log.error("validation.failed", code="DUPLICATE_SYMBOLS")
        raise OrderValidationError("Duplicate stock symbols detected in portfolio", "DUPLICATE_SYMBOLS")


def validate_order_request(request: OrderRequest, tolerance: Number = DEFAULT_TOLERANCE) -> None:
    """Validate a full order request: type, portfolio, then total amount."""
    if request.order_type not in ORDER_TYPES:
        raise OrderValidationError(
            f"Order type must be one of {', '.join(ORDER_TYPES)}, got {request.order_type!r}",
            "INVALID_ORDER_TYPE",
        )

    validate_portfolio(request.portfolio, tolerance)

    if to_decimal(request.total_amount, "total_amount") <= 0:
        log.error("validation.failed", code="INVALID_AMOUNT", total_amount=str(request.total_amount))
        raise OrderValidationError("Total amount must be greater than 0", "INVALID_AMOUNT")
