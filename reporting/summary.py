from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List

import pandas as pd

from common.decimal_math import MONEY_PLACES, divide, round_decimal, sum_decimals
from portfolio.order import Order

FRAME_COLUMNS = ["order_id", "order_type", "portfolio_name", "execution_date", "line", "symbol", "amount", "price", "quantity"]


def order_summary(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_type": order.order_type,
        "portfolio_name": order.portfolio_name,
        "status": order.status,
        "execution_date": order.execution_date,
        "total_amount": order.total_amount,
        "lines": len(order.orders),
        "remainder_symbol": order.orders[-1].symbol if order.orders else None,
    }


def orders_frame(orders: List[Order]) -> pd.DataFrame:
    """One row per allocation line. Money columns stay Decimal (object dtype)."""
    rows = [
        {
            "order_id": o.id,
            "order_type": o.order_type,
            "portfolio_name": o.portfolio_name,
            "execution_date": o.execution_date,
            "line": i,
            "symbol": a.symbol,
            "amount": a.amount,
            "price": a.price,
            "quantity": a.quantity,
        }
        for o in orders
        for i, a in enumerate(o.orders)
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def order_metrics(orders: List[Order]) -> Dict[str, Any]:
    df = orders_frame(orders)
    total_orders = len(orders)
    if df.empty:
        total_amount = Decimal(0)
    else:
        total_amount = sum_decimals(*df["amount"].tolist())
    buy = sum(1 for o in orders if o.order_type == "BUY")
    sell = sum(1 for o in orders if o.order_type == "SELL")
    average = divide(total_amount, total_orders, MONEY_PLACES) if total_orders else Decimal(0)
    return {
        "total_orders": total_orders,
        "total_amount": round_decimal(total_amount, MONEY_PLACES),
        "average_order_size": average,
        "buy_orders": buy,
        "sell_orders": sell,
        "symbols": int(df["symbol"].nunique()) if not df.empty else 0,
    }


def amount_by_symbol(orders: List[Order]) -> Dict[str, Decimal]:
    """Total allocated amount per symbol across orders."""
    df = orders_frame(orders)
    if df.empty:
        return {}
    grouped = df.groupby("symbol", sort=True)["amount"].apply(lambda s: sum_decimals(*s.tolist()))
    return {str(k): v for k, v in grouped.items()}
