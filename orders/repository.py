"""Order persistence.

Stores completed splits keyed by order id. The in-memory repository is the
default backend; anything implementing ``OrderRepository`` can replace it.
"""
from __future__ import annotations

import threading
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

import structlog

from common.errors import PersistenceError
from portfolio.order import Order

log = structlog.get_logger(__name__)


class OrderRepository(Protocol):
    def save(self, order: Order) -> None: ...

    def find_all(self) -> List[Order]: ...

    def find_by_id(self, order_id: str) -> Optional[Order]: ...

    def delete(self, order_id: str) -> bool: ...

    def stats(self) -> Dict[str, Any]: ...

    def clear(self) -> None: ...


class InMemoryOrderRepository:
    """Insertion-ordered order store guarded by a lock."""

    def __init__(self) -> None:
        self._orders: List[Order] = []
        self._lock = threading.Lock()

    def save(self, order: Order) -> None:
        if not order.id:
            log.error("order.save_failed", reason="missing id")
            raise PersistenceError("Failed to save order: order must have an id", "SAVE_ORDER_FAILED")
        with self._lock:
            if any(o.id == order.id for o in self._orders):
                raise PersistenceError(
                    f"Failed to save order: id {order.id} already exists", "SAVE_ORDER_FAILED"
                )
            self._orders.append(order)
            count = len(self._orders)
        log.info("order.persisted", order_id=order.id, order_type=order.order_type, stored=count)

    def find_all(self) -> List[Order]:
        with self._lock:
            return list(self._orders)

    def find_by_id(self, order_id: str) -> Optional[Order]:
        with self._lock:
            return next((o for o in self._orders if o.id == order_id), None)

    def delete(self, order_id: str) -> bool:
        with self._lock:
            before = len(self._orders)
            self._orders = [o for o in self._orders if o.id != order_id]
            deleted = len(self._orders) < before
        if deleted:
            log.info("order.deleted", order_id=order_id)
        else:
            log.warning("order.delete_missing", order_id=order_id)
        return deleted

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            orders = list(self._orders)
        return {
            "total_orders": len(orders),
            "total_amount": sum((o.total_amount for o in orders), Decimal(0)),
            "oldest_order": orders[0].id if orders else None,
        }

    def clear(self) -> None:
        log.warning("order.store_cleared")
        with self._lock:
            self._orders = []
