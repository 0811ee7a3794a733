"""Order service.

Request-level workflow around the two engines: validate the request, pick
the execution date from the market calendar, split the total, persist the
result. Also serves order lookup, history and metrics.
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import structlog

from common.config_loader import LoadedConfig
from common.decimal_math import DEFAULT_TOLERANCE, Number, to_decimal
from common.errors import OrderValidationError
from engine.allocation_engine import split
from market.calendar_engine import MarketCalendar
from market.clock import UTC, Clock
from orders.idempotency import IdempotencyStore
from orders.repository import InMemoryOrderRepository, OrderRepository
from policy.calendar_policy import build_market_calendar
from policy.order_policy import DEFAULT_SHARE_PRECISION, OrderPolicy
from policy.order_validation import validate_order_request
from policy.pricing_policy import FixedPriceResolver, PriceResolver, PricingPolicy
from portfolio.order import ORDER_TYPES, Order, OrderRequest
from reporting.summary import order_metrics

log = structlog.get_logger(__name__)


@dataclass
class SplitResult:
    """A persisted order plus timing/context metadata."""

    order: Order
    meta: Dict[str, Any]


@dataclass
class OrderService:
    pricing: PriceResolver = field(default_factory=FixedPriceResolver)
    repo: OrderRepository = field(default_factory=InMemoryOrderRepository)
    calendar: MarketCalendar = field(default_factory=MarketCalendar)
    idempotency: IdempotencyStore = field(default_factory=IdempotencyStore)
    share_precision: int = DEFAULT_SHARE_PRECISION
    weight_tolerance: Number = DEFAULT_TOLERANCE

    def split(self, request: OrderRequest, idempotency_key: Optional[str] = None) -> SplitResult:
        """Validate, schedule, split and persist one order request.

        Args:
            request: Order type, total amount and the ordered portfolio.
            idempotency_key: Optional client key; a repeat within the TTL is rejected.

        Returns:
            SplitResult with the stored Order and metadata.
        """
        order_id = str(uuid.uuid4())
        start = time.perf_counter()
        bound = log.bind(order_id=order_id)
        bound.info(
            "split.started",
            order_type=request.order_type,
            total_amount=str(request.total_amount),
            portfolio_size=len(request.portfolio),
        )

        try:
            self.idempotency.check(idempotency_key)
            validate_order_request(request, self.weight_tolerance)

            now = self.calendar.instant()
            execution_date = self.calendar.next_execution_date(now)
            bound.debug("split.execution_date", execution_date=execution_date)

            allocations = split(
                request.total_amount,
                request.portfolio,
                self.pricing,
                self.share_precision,
            )

            order = Order(
                id=order_id,
                portfolio_name=request.portfolio_name,
                order_type=request.order_type,  # type: ignore[arg-type]
                status="Created",
                execution_date=execution_date,
                orders=allocations,
                created_at=now.astimezone(UTC).isoformat(),
            )
            self.repo.save(order)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            bound.error("split.failed", elapsed_ms=round(elapsed_ms, 3), error=str(e))
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        meta = {
            "split_time_ms": round(elapsed_ms, 3),
            "total_amount": to_decimal(request.total_amount),
            "execution_date": execution_date,
            "precision": self.share_precision,
        }
        bound.info("split.completed", lines=len(allocations), **{k: str(v) for k, v in meta.items()})
        return SplitResult(order=order, meta=meta)

    def find_by_id(self, order_id: str) -> Optional[Order]:
        order = self.repo.find_by_id(order_id)
        if order is None:
            log.warning("order.not_found", order_id=order_id)
        return order

    def delete_order(self, order_id: str) -> bool:
        return self.repo.delete(order_id)

    def history(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order_type: Optional[str] = None,
        portfolio_name: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Filtered, offset-paginated order history.

        Date bounds compare against ``execution_date`` and are inclusive.
        """
        if order_type is not None and order_type not in ORDER_TYPES:
            raise OrderValidationError(f"Unknown order type: {order_type!r}", "INVALID_ORDER_TYPE")
        start = _parse_day(start_date, "start_date")
        end = _parse_day(end_date, "end_date")

        orders: List[Order] = self.repo.find_all()
        if order_type:
            orders = [o for o in orders if o.order_type == order_type]
        if portfolio_name:
            orders = [o for o in orders if o.portfolio_name == portfolio_name]
        if start is not None:
            orders = [o for o in orders if date.fromisoformat(o.execution_date) >= start]
        if end is not None:
            orders = [o for o in orders if date.fromisoformat(o.execution_date) <= end]

        first = offset or 0
        last = first + limit if limit else len(orders)
        page = orders[first:last]
        log.debug("history.fetched", total=len(orders), offset=first, returned=len(page))
        return {
            "total": len(orders),
            "limit": limit if limit else len(orders),
            "offset": first,
            "data": page,
        }

    def metrics(self) -> Dict[str, Any]:
        result = order_metrics(self.repo.find_all())
        result["computed_at"] = self.calendar.instant().astimezone(UTC).isoformat()
        log.info("metrics.computed", total_orders=result["total_orders"])
        return result


def _parse_day(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise OrderValidationError(f"{name} must be YYYY-MM-DD, got {value!r}", "INVALID_DATE") from e


def build_order_service(cfg: LoadedConfig, clock: Optional[Clock] = None) -> OrderService:
    """Wire an OrderService from loaded YAML config (env overrides included)."""
    order_pol = OrderPolicy(cfg.orders)
    calendar = build_market_calendar(cfg.calendar, clock)
    return OrderService(
        pricing=FixedPriceResolver.from_policy(PricingPolicy(cfg.orders)),
        repo=InMemoryOrderRepository(),
        calendar=calendar,
        idempotency=IdempotencyStore(
            ttl=timedelta(hours=order_pol.idempotency_ttl_hours),
            clock=calendar.clock,
        ),
        share_precision=order_pol.share_precision,
        weight_tolerance=order_pol.weight_tolerance,
    )
