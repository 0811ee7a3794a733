"""Order splitter CLI.

Provides commands for:
- split: Split a total across a weighted portfolio and schedule it
- next-date: Next valid execution date for an instant
- market-status: Session state for an instant
- validate: Run the market validators for an instant
"""
from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List, Optional

import yaml

from common.config_loader import DEFAULT_CALENDAR_PATH, DEFAULT_ORDERS_PATH, LoadedConfig, load_all, load_yaml
from common.errors import OrderSplitError
from common.logging_setup import configure_logging
from engine.order_service import build_order_service
from market.calendar_engine import MarketCalendar
from market.clock import FixedClock, parse_instant
from policy.calendar_policy import CalendarPolicy, build_market_calendar
from portfolio.order import OrderRequest
from portfolio.portfolio_item import PortfolioItem
from reporting.explainability import explain_allocations, explainability_report

# Bad --at values, unreadable portfolio files and rejected numbers.
INPUT_ERRORS = (OSError, yaml.YAMLError, TypeError, ValueError, OrderSplitError)


def parse_item(text: str) -> PortfolioItem:
    """Parse ``SYMBOL=WEIGHT`` or ``SYMBOL=WEIGHT@PRICE``."""
    symbol, sep, rest = text.partition("=")
    if not sep:
        raise ValueError(f"Invalid --item format: {text} (expected SYMBOL=WEIGHT[@PRICE])")
    weight, _, price = rest.partition("@")
    return PortfolioItem.of(symbol.strip(), weight.strip(), price.strip() or None)


def load_portfolio_file(path: str) -> Dict[str, Any]:
    raw = load_yaml(path)
    raw["portfolio"] = [PortfolioItem.from_dict(p) for p in raw.get("portfolio") or []]
    return raw


def build_calendar(cfg: LoadedConfig, at: Optional[str]) -> MarketCalendar:
    """Calendar from config; ``--at`` pins its clock to that instant."""
    clock = None
    if at:
        clock = FixedClock(parse_instant(at, CalendarPolicy(cfg.calendar).default_timezone))
    return build_market_calendar(cfg.calendar, clock)


def cmd_split(args) -> int:
    """Handle split command: allocate a total and schedule execution."""
    cfg = load_all(args.orders_config, args.calendar_config)

    file_cfg: Dict[str, Any] = {}
    try:
        if args.portfolio_file:
            file_cfg = load_portfolio_file(args.portfolio_file)
        items: List[PortfolioItem] = list(file_cfg.get("portfolio") or [])
        items.extend(parse_item(i) for i in args.item or [])
        calendar = build_calendar(cfg, args.at)
    except INPUT_ERRORS as e:
        print(f"Error: {e}")
        return 1

    total = args.total if args.total is not None else file_cfg.get("total")
    if total is None:
        print("Error: --total is required (or set 'total' in the portfolio file)")
        return 1

    service = build_order_service(cfg, calendar.clock)
    request = OrderRequest(
        order_type=(args.order_type or file_cfg.get("order_type") or "BUY").upper(),
        total_amount=total,
        portfolio=items,
        portfolio_name=args.name or file_cfg.get("portfolio_name") or "",
    )

    try:
        result = service.split(request)
    except OrderSplitError as e:
        print(f"Error [{e.code}]: {e.message}")
        return 1

    if args.json:
        print(json.dumps(explainability_report(result.order, result.meta), indent=2, default=str))
        return 0

    order = result.order
    print(f"{order.order_type} {order.portfolio_name or 'portfolio'}: ${result.meta['total_amount']:,.2f}")
    print("=" * 50)
    print(f"  Order id:        {order.id}")
    print(f"  Execution date:  {order.execution_date}")
    print(f"  Share precision: {result.meta['precision']}")
    print("\nAllocations:")
    lines = explain_allocations(order.orders) if args.explain else [str(a) for a in order.orders]
    for line in lines:
        print("  " + line)
    return 0


def cmd_next_date(args) -> int:
    """Handle next-date command."""
    cfg = load_all(args.orders_config, args.calendar_config)
    try:
        calendar = build_calendar(cfg, args.at)
        print(calendar.next_execution_date())
    except INPUT_ERRORS as e:
        print(f"Error: {e}")
        return 1
    return 0


def cmd_market_status(args) -> int:
    """Handle market-status command: session state for an instant."""
    cfg = load_all(args.orders_config, args.calendar_config)
    try:
        calendar = build_calendar(cfg, args.at)
        next_date = calendar.next_execution_date()
    except INPUT_ERRORS as e:
        print(f"Error: {e}")
        return 1
    inst = calendar.instant()
    ref = calendar.to_reference(inst)

    print(f"Instant:          {inst.isoformat()}")
    print(f"Reference time:   {ref.isoformat()} ({ref.tzname()})")
    print(f"Business day:     {calendar.is_business_day(ref.date())}")
    print(f"Market open:      {calendar.is_market_open_at(inst)}")
    print(f"Next execution:   {next_date}")
    return 0


def cmd_validate(args) -> int:
    """Handle validate command: run market validators, report the first failure."""
    cfg = load_all(args.orders_config, args.calendar_config)
    try:
        calendar = build_calendar(cfg, args.at)
    except INPUT_ERRORS as e:
        print(f"Error: {e}")
        return 1
    inst = calendar.instant()

    try:
        if args.check in ("open", "all"):
            calendar.validate_market_open(inst)
        if args.check in ("time-slot", "all"):
            calendar.validate_market_time_slot(inst)
    except OrderSplitError as e:
        print(f"Rejected [{e.code}]: {e.message}")
        return 1

    print("OK")
    return 0


def main():
    """Main entry point."""
    p = argparse.ArgumentParser(
        prog="order-splitter",
        description="Order splitter CLI: decimal-exact portfolio splits with market-calendar scheduling",
    )
    p.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL env or INFO)")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Common arguments for all commands
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--orders-config", default=DEFAULT_ORDERS_PATH, help="Orders config file")
    common.add_argument("--calendar-config", default=DEFAULT_CALENDAR_PATH, help="Market calendar config file")
    common.add_argument(
        "--at",
        default=None,
        help="Instant to evaluate, ISO-8601 with offset (default: now). Naive values use the calendar default timezone.",
    )

    # Split command
    sp = sub.add_parser("split", parents=[common], help="Split a total across a portfolio")
    sp.add_argument("--total", default=None, help="Total amount to split")
    sp.add_argument(
        "--item",
        action="append",
        help="Portfolio item SYMBOL=WEIGHT[@PRICE]; repeat in order (last item absorbs the remainder)",
    )
    sp.add_argument("--portfolio-file", default=None, help="YAML with portfolio/total/order_type/portfolio_name")
    sp.add_argument("--type", dest="order_type", choices=["BUY", "SELL", "buy", "sell"], default=None)
    sp.add_argument("--name", default=None, help="Portfolio name")
    sp.add_argument("--explain", action="store_true", help="Include explanations for each line")
    sp.add_argument("--json", action="store_true", help="Print a JSON report")
    sp.set_defaults(func=cmd_split)

    # Next-date command
    nd = sub.add_parser("next-date", parents=[common], help="Next valid execution date")
    nd.set_defaults(func=cmd_next_date)

    # Market-status command
    ms = sub.add_parser("market-status", parents=[common], help="Show session state")
    ms.set_defaults(func=cmd_market_status)

    # Validate command
    va = sub.add_parser("validate", parents=[common], help="Run market validators")
    va.add_argument("--check", choices=["open", "time-slot", "all"], default="all")
    va.set_defaults(func=cmd_validate)

    args = p.parse_args()
    configure_logging(level=args.log_level)
    raise SystemExit(args.func(args))


if __name__ == "__main__":
    main()
