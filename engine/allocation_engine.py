"""Allocation engine.

Splits a money total across an ordered, weighted portfolio so that the
allocated amounts add up to the total exactly.

Remainder policy: every item except the last is rounded to cents
(half-even); the last item receives ``total - allocated_so_far`` and so
absorbs the whole rounding remainder. The result is order-sensitive: moving
a different item to the end changes which line carries the remainder, never
the total or the other lines.
"""
from __future__ import annotations

from decimal import Decimal
from typing import List, Sequence

import structlog

from common.decimal_math import (
    MONEY_PLACES,
    Number,
    check_precision,
    divide,
    multiply,
    round_decimal,
    subtract,
    sum_decimals,
    to_decimal,
    verify_total_accuracy,
)
from common.errors import AllocationMismatchError, InvalidNumberError, InvalidPriceError
from policy.pricing_policy import PriceResolver
from portfolio.allocation import Allocation
from portfolio.portfolio_item import PortfolioItem

log = structlog.get_logger(__name__)

REMAINDER_POLICY = "last_item"


def split(
    total: Number,
    portfolio: Sequence[PortfolioItem],
    price_resolver: PriceResolver,
    quantity_precision: int,
) -> List[Allocation]:
    """Split ``total`` across ``portfolio`` in input order.

    Args:
        total: Amount to split, > 0.
        portfolio: Ordered items; weights should sum to ~1 (checked by the caller).
        price_resolver: ``(symbol, override) -> price``; price must be > 0.
        quantity_precision: Decimal places for share quantities (0-28).

    Returns:
        One Allocation per item, same order as ``portfolio``.

    Raises:
        InvalidNumberError: total is not a finite positive number.
        InvalidPrecisionError: quantity_precision outside [0, 28].
        InvalidPriceError / DivisionByZeroError: a resolved price is not positive.
        AllocationMismatchError: amounts do not add back to total.
    """
    check_precision(quantity_precision)
    total_dec = to_decimal(total, "total")
    if total_dec <= 0:
        raise InvalidNumberError(f"Total amount must be greater than 0, got {total_dec}")

    allocated_total = Decimal(0)
    last_index = len(portfolio) - 1
    allocations: List[Allocation] = []

    for index, item in enumerate(portfolio):
        if index == last_index:
            amount = subtract(total_dec, allocated_total)
        else:
            amount = round_decimal(multiply(total_dec, item.weight), MONEY_PLACES)
            allocated_total = sum_decimals(allocated_total, amount)

        price = to_decimal(price_resolver(item.symbol, item.price), f"price for {item.symbol}")
        if price < 0:
            raise InvalidPriceError(f"Price must be greater than 0 for symbol {item.symbol}, got {price}")
        # A zero price surfaces as DivisionByZeroError here.
        quantity = divide(amount, price, quantity_precision)

        allocations.append(Allocation(symbol=item.symbol, amount=amount, price=price, quantity=quantity))

    calculated_total = sum_decimals(*(a.amount for a in allocations))
    if not verify_total_accuracy(calculated_total, total_dec):
        log.error("split.total_mismatch", expected=str(total_dec), actual=str(calculated_total))
        raise AllocationMismatchError(
            f"Order split calculation error: expected {total_dec}, got {calculated_total}"
        )

    log.debug(
        "split.computed",
        total=str(total_dec),
        lines=len(allocations),
        remainder_symbol=allocations[-1].symbol if allocations else None,
        precision=quantity_precision,
    )
    return allocations


class AllocationEngine:
    """Object wrapper around ``split`` with a bound resolver and precision."""

    def __init__(self, price_resolver: PriceResolver, quantity_precision: int) -> None:
        check_precision(quantity_precision)
        self.price_resolver = price_resolver
        self.quantity_precision = quantity_precision

    def split(self, total: Number, portfolio: Sequence[PortfolioItem]) -> List[Allocation]:
        return split(total, portfolio, self.price_resolver, self.quantity_precision)
