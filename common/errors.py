"""Error catalogue for the order splitter.

Every error carries a stable machine-readable ``code`` so callers can surface
it directly as a request failure. None of these are retried.
"""
from __future__ import annotations

from typing import Any, Dict


class OrderSplitError(Exception):
    """Base error with a stable code."""

    code: str = "ORDER_SPLIT_ERROR"
    status_code: int = 400

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "status_code": self.status_code}


class InvalidNumberError(OrderSplitError, ValueError):
    code = "INVALID_NUMBER"


class InvalidPrecisionError(OrderSplitError, ValueError):
    code = "INVALID_PRECISION"


class DivisionByZeroError(OrderSplitError, ZeroDivisionError):
    code = "DIVISION_BY_ZERO"


class InvalidPriceError(OrderSplitError, ValueError):
    code = "INVALID_PRICE"


class AllocationMismatchError(OrderSplitError, ArithmeticError):
    code = "ALLOCATION_MISMATCH"
    status_code = 500


class MarketClosedError(OrderSplitError):
    code = "MARKET_CLOSED"


class MarketClosedEarlyError(MarketClosedError):
    code = "MARKET_CLOSED_EARLY"


class MarketClosedLateError(MarketClosedError):
    code = "MARKET_CLOSED_LATE"


class MarketClosedWeekendError(MarketClosedError):
    code = "MARKET_CLOSED_WEEKEND"


class MarketClosedHolidayError(MarketClosedError):
    code = "MARKET_CLOSED_HOLIDAY"


class OrderValidationError(OrderSplitError, ValueError):
    """Rejected request; ``code`` names the failed rule (e.g. ``EMPTY_SYMBOL``)."""

    code = "ORDER_VALIDATION_FAILED"


class DuplicateRequestError(OrderSplitError):
    code = "DUPLICATE_REQUEST"
    status_code = 409


class PersistenceError(OrderSplitError):
    code = "PERSISTENCE_FAILED"
    status_code = 500


class NoExecutionDateError(OrderSplitError, RuntimeError):
    """No business day found within the scheduling horizon."""

    code = "NO_EXECUTION_DATE"
    status_code = 500
