from __future__ import annotations
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol

import structlog

from common.decimal_math import Number, to_decimal
from common.errors import InvalidPriceError

log = structlog.get_logger(__name__)

DEFAULT_FIXED_PRICE = Decimal("100")


class PriceResolver(Protocol):
    """Resolves a unit price for ``symbol``; a positive override wins."""

    def __call__(self, symbol: str, override: Optional[Number] = None) -> Decimal: ...


@dataclass(frozen=True)
class PricingPolicy:
    raw: Dict[str, Any]

    @property
    def fixed_price(self) -> Decimal:
        env = os.getenv("FIXED_PRICE")
        if env is not None and env.strip():
            return to_decimal(env.strip(), "FIXED_PRICE")
        value = (self.raw.get("pricing") or {}).get("fixed_price", DEFAULT_FIXED_PRICE)
        return to_decimal(value, "pricing.fixed_price")


@dataclass(frozen=True)
class FixedPriceResolver:
    """Every symbol trades at one configured price unless overridden."""

    fixed_price: Decimal = DEFAULT_FIXED_PRICE

    def __post_init__(self) -> None:
        if not validate_price(self.fixed_price):
            raise InvalidPriceError(f"Fixed price must be greater than 0, got {self.fixed_price}")

    @classmethod
    def from_policy(cls, pol: PricingPolicy) -> "FixedPriceResolver":
        return cls(fixed_price=pol.fixed_price)

    def __call__(self, symbol: str, override: Optional[Number] = None) -> Decimal:
        if override is not None:
            price = to_decimal(override, f"price override for {symbol}")
            if price > 0:
                log.debug("pricing.override", symbol=symbol, price=str(price))
                return price
        log.debug("pricing.fixed", symbol=symbol, price=str(self.fixed_price))
        return to_decimal(self.fixed_price)


def validate_price(price: Number) -> bool:
    if to_decimal(price) <= 0:
        log.warning("pricing.invalid_price", price=str(price))
        return False
    return True
