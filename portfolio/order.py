from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Literal

from portfolio.allocation import Allocation
from portfolio.portfolio_item import PortfolioItem

OrderType = Literal["BUY", "SELL"]
OrderStatus = Literal["Created", "Executed", "Cancelled"]

ORDER_TYPES = ("BUY", "SELL")


@dataclass(frozen=True)
class OrderRequest:
    order_type: str
    total_amount: Decimal
    portfolio: List[PortfolioItem]
    portfolio_name: str = ""


@dataclass(frozen=True)
class Order:
    id: str
    portfolio_name: str
    order_type: OrderType
    status: OrderStatus
    execution_date: str  # YYYY-MM-DD
    orders: List[Allocation] = field(default_factory=list)
    created_at: str = ""

    @property
    def total_amount(self) -> Decimal:
        return sum((a.amount for a in self.orders), Decimal(0))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "portfolio_name": self.portfolio_name,
            "order_type": self.order_type,
            "status": self.status,
            "execution_date": self.execution_date,
            "orders": [a.to_dict() for a in self.orders],
            "created_at": self.created_at,
        }
