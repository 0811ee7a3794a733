from __future__ import annotations
from typing import Any, Dict, List

from portfolio.allocation import Allocation
from portfolio.order import Order
from reporting.summary import order_summary


def explain_allocations(allocations: List[Allocation]) -> List[str]:
    """One line per allocation; the last line is marked as the remainder holder."""
    lines = []
    last = len(allocations) - 1
    for i, a in enumerate(allocations):
        reason = "remainder (total - allocated)" if i == last else "weight x total, rounded half-even"
        lines.append(f"{a}  |  {reason}")
    return lines


def explainability_report(order: Order, meta: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "summary": order_summary(order),
        "meta": {k: str(v) for k, v in meta.items()},
        "orders": [a.to_dict() for a in order.orders],
        "explanations": explain_allocations(order.orders),
    }
