from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict


@dataclass(frozen=True)
class Allocation:
    """One line of a split: money, unit price and share quantity for a symbol."""

    symbol: str
    amount: Decimal
    price: Decimal
    quantity: Decimal

    def __str__(self) -> str:
        return f"{self.symbol}: ${self.amount:,.2f} @ ${self.price:,.2f} = {self.quantity} sh"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "amount": str(self.amount),
            "price": str(self.price),
            "quantity": str(self.quantity),
        }
