from __future__ import annotations
from dataclasses import dataclass
from datetime import time, tzinfo
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from market.calendar_engine import MARKET_CLOSE, MARKET_OPEN, REFERENCE_TIMEZONE, MarketCalendar
from market.clock import Clock, SystemClock
from market.holidays import StaticHolidayCalendar, default_holiday_calendar


def _as_time(value: Any, default: time) -> time:
    if value is None:
        return default
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value).strip())


@dataclass(frozen=True)
class CalendarPolicy:
    raw: Dict[str, Any]

    @property
    def reference_timezone(self) -> tzinfo:
        return ZoneInfo(str(self.raw.get("reference_timezone", REFERENCE_TIMEZONE)))

    @property
    def default_timezone(self) -> tzinfo:
        return ZoneInfo(str(self.raw.get("default_timezone", "UTC")))

    @property
    def session_open(self) -> time:
        return _as_time((self.raw.get("session") or {}).get("open"), MARKET_OPEN)

    @property
    def session_close(self) -> time:
        return _as_time((self.raw.get("session") or {}).get("close"), MARKET_CLOSE)

    @property
    def holidays(self) -> StaticHolidayCalendar:
        listed = self.raw.get("holidays")
        if listed is None:
            return default_holiday_calendar()
        return StaticHolidayCalendar.from_dates(listed)


def build_market_calendar(raw: Dict[str, Any], clock: Optional[Clock] = None) -> MarketCalendar:
    """Build a MarketCalendar from calendar config; empty config gives the defaults."""
    pol = CalendarPolicy(raw)
    return MarketCalendar(
        holidays=pol.holidays,
        reference_tz=pol.reference_timezone,
        default_tz=pol.default_timezone,
        open_time=pol.session_open,
        close_time=pol.session_close,
        clock=clock or SystemClock(),
    )
