"""Market calendar engine.

Resolves trading-session state and the next valid execution date. Exchange
rules (weekdays, holidays, session hours) live in one fixed reference timezone;
inputs may be expressed in any caller timezone.

Two session-close boundaries coexist and are kept as-is:
- ``is_market_open_at`` treats 16:00:00 as closed (exclusive).
- ``validate_market_time_slot`` accepts 16:00:00 (inclusive).
Both are exposed as named constants below and pinned by tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo

import structlog

from common.errors import (
    MarketClosedEarlyError,
    MarketClosedHolidayError,
    MarketClosedLateError,
    MarketClosedWeekendError,
    NoExecutionDateError,
)
from market.clock import UTC, Clock, SystemClock, parse_instant
from market.holidays import HolidayCalendar, default_holiday_calendar

log = structlog.get_logger(__name__)

REFERENCE_TIMEZONE = "America/New_York"
MARKET_OPEN = time(9, 30, 0)
MARKET_CLOSE = time(16, 0, 0)

IS_OPEN_CLOSE_INCLUSIVE = False
TIME_SLOT_CLOSE_INCLUSIVE = True

# Longest weekend/holiday run the skip loop will walk before giving up.
MAX_SKIP_DAYS = 366

DATE_FORMAT = "%Y-%m-%d"
_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def _seconds_of_day(t: datetime | time) -> int:
    # Whole seconds; sub-second parts are dropped.
    return t.hour * 3600 + t.minute * 60 + t.second


def _before_close(seconds: int, close_seconds: int, inclusive: bool) -> bool:
    return seconds <= close_seconds if inclusive else seconds < close_seconds


def is_weekday(d: date) -> bool:
    return d.weekday() < 5


def _format_hhmm(t: time) -> str:
    return t.strftime("%I:%M %p").lstrip("0")


@dataclass(frozen=True)
class MarketCalendar:
    """Trading-session rules projected into ``reference_tz``."""

    holidays: HolidayCalendar = field(default_factory=default_holiday_calendar)
    reference_tz: tzinfo = field(default_factory=lambda: ZoneInfo(REFERENCE_TIMEZONE))
    default_tz: tzinfo = UTC
    open_time: time = MARKET_OPEN
    close_time: time = MARKET_CLOSE
    clock: Clock = field(default_factory=SystemClock)

    def __post_init__(self) -> None:
        if self.open_time >= self.close_time:
            raise ValueError(f"Session open {self.open_time} must be before close {self.close_time}")

    # -- projections -------------------------------------------------------

    def instant(self, value: Any = None) -> datetime:
        """Normalize caller input to an aware instant; ``None`` means now."""
        if value is None:
            return parse_instant(self.clock.now(), self.default_tz)
        return parse_instant(value, self.default_tz)

    def to_reference(self, value: Any) -> datetime:
        return self.instant(value).astimezone(self.reference_tz)

    @property
    def zone_label(self) -> str:
        return "ET" if str(self.reference_tz) == REFERENCE_TIMEZONE else str(self.reference_tz)

    @property
    def trading_hours_label(self) -> str:
        return f"{_format_hhmm(self.open_time)} - {_format_hhmm(self.close_time)} {self.zone_label}"

    # -- predicates --------------------------------------------------------

    def is_business_day(self, d: date) -> bool:
        """Weekday that is not a listed holiday."""
        return is_weekday(d) and not self.holidays.is_holiday(d)

    def is_market_time_open(self, value: Any) -> bool:
        """Time-of-day window only, close exclusive."""
        ref = self.to_reference(value)
        return self._within_session(ref)

    def _within_session(self, ref: datetime) -> bool:
        secs = _seconds_of_day(ref)
        return secs >= _seconds_of_day(self.open_time) and _before_close(
            secs, _seconds_of_day(self.close_time), IS_OPEN_CLOSE_INCLUSIVE
        )

    def is_market_open_at(self, value: Any) -> bool:
        """Weekday, not a holiday, and inside [open, close) in reference time."""
        ref = self.to_reference(value)
        if not self.is_business_day(ref.date()):
            return False
        return self._within_session(ref)

    # -- validators --------------------------------------------------------

    def validate_market_time_slot(self, value: Any) -> None:
        """Raise unless reference time-of-day is within [open, close].

        The day of week is not checked here; see ``validate_market_open``.
        """
        inst = self.instant(value)
        ref = inst.astimezone(self.reference_tz)
        secs = _seconds_of_day(ref)
        current = f"{ref.hour:02d}:{ref.minute:02d}"

        if secs < _seconds_of_day(self.open_time):
            raise MarketClosedEarlyError(
                f"Market is not open. Trading hours are {self.trading_hours_label}. "
                f"Current time: {current} {self.zone_label}"
            )
        if not _before_close(secs, _seconds_of_day(self.close_time), TIME_SLOT_CLOSE_INCLUSIVE):
            raise MarketClosedLateError(
                f"Market is closed. Trading hours are {self.trading_hours_label}. "
                f"Current time: {current} {self.zone_label}"
            )
        log.debug("calendar.time_slot_valid", instant=inst.isoformat())

    def validate_market_open(self, value: Any) -> None:
        """Raise if the reference-timezone date is a weekend or holiday."""
        ref_date = self.to_reference(value).date()
        ref_str = ref_date.strftime(DATE_FORMAT)

        if not is_weekday(ref_date):
            raise MarketClosedWeekendError(
                f"Market is closed on weekends. {ref_str} is a {_DAY_NAMES[ref_date.weekday()]}"
            )
        if self.holidays.is_holiday(ref_date):
            raise MarketClosedHolidayError(f"Market is closed on this holiday: {ref_str}")

    # -- scheduling --------------------------------------------------------

    def next_execution_date(self, value: Optional[Any] = None) -> str:
        """Return the execution date as ``YYYY-MM-DD`` in the caller's calendar.

        Open/closed is decided in reference time. The returned date, and the
        weekend/holiday skip over it, use the caller's local calendar date.
        """
        inst = self.instant(value)
        local_date = inst.date()

        if self.is_market_open_at(inst):
            result = local_date.strftime(DATE_FORMAT)
            log.debug("calendar.next_execution_date", instant=inst.isoformat(), market_open=True, date=result)
            return result

        candidate = local_date + timedelta(days=1)
        skipped = 0
        while not self.is_business_day(candidate):
            skipped += 1
            if skipped > MAX_SKIP_DAYS:
                raise NoExecutionDateError(f"No business day within {MAX_SKIP_DAYS} days of {local_date}")
            candidate += timedelta(days=1)

        result = candidate.strftime(DATE_FORMAT)
        log.debug(
            "calendar.next_execution_date",
            instant=inst.isoformat(),
            market_open=False,
            skipped_days=skipped,
            date=result,
        )
        return result
