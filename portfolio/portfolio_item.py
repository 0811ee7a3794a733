from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from common.decimal_math import Number, to_decimal


@dataclass(frozen=True)
class PortfolioItem:
    symbol: str
    weight: Decimal
    price: Optional[Decimal] = None  # override; None means use the resolver's default

    @classmethod
    def of(cls, symbol: str, weight: Number, price: Optional[Number] = None) -> "PortfolioItem":
        return cls(
            symbol=symbol,
            weight=to_decimal(weight, f"weight for {symbol}"),
            price=None if price is None else to_decimal(price, f"price for {symbol}"),
        )

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PortfolioItem":
        return cls.of(str(raw.get("symbol") or ""), raw.get("weight", 0), raw.get("price"))
