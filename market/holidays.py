"""Holiday calendar providers.

The holiday set is static reference data. ``MarketCalendar`` only asks a
provider ``is_holiday(d)``; supporting another year means extending the data
(here or in ``config/market_calendar.yaml``), not changing code.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, FrozenSet, Iterable, Protocol

from common.config_loader import load_yaml

# US equity market holidays for 2024-2026, exchange-local dates.
US_EQUITY_HOLIDAYS = (
    "2024-01-01", "2024-01-15", "2024-02-19", "2024-03-29", "2024-05-27",
    "2024-06-19", "2024-07-04", "2024-09-02", "2024-11-28", "2024-12-25",
    "2025-01-01", "2025-01-20", "2025-02-17", "2025-04-18", "2025-05-26",
    "2025-06-19", "2025-07-04", "2025-09-01", "2025-11-27", "2025-12-25",
    "2026-01-01", "2026-01-19", "2026-02-16", "2026-04-03", "2026-05-25",
    "2026-06-19", "2026-07-04", "2026-09-07", "2026-11-26", "2026-12-25",
)


class HolidayCalendar(Protocol):
    def is_holiday(self, d: date) -> bool: ...


def _as_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


@dataclass(frozen=True)
class StaticHolidayCalendar:
    """Holiday calendar backed by an explicit, finite set of dates."""

    holidays: FrozenSet[date]

    @classmethod
    def from_dates(cls, values: Iterable[Any]) -> "StaticHolidayCalendar":
        return cls(holidays=frozenset(_as_date(v) for v in values))

    def is_holiday(self, d: date) -> bool:
        return d in self.holidays

    @property
    def first_year(self) -> int | None:
        return min(self.holidays).year if self.holidays else None

    @property
    def last_year(self) -> int | None:
        return max(self.holidays).year if self.holidays else None


def default_holiday_calendar() -> StaticHolidayCalendar:
    return StaticHolidayCalendar.from_dates(US_EQUITY_HOLIDAYS)


def load_holiday_calendar(path: str | Path) -> StaticHolidayCalendar:
    """Load the ``holidays`` list from a calendar YAML file."""
    raw = load_yaml(path)
    return StaticHolidayCalendar.from_dates(raw.get("holidays") or [])
