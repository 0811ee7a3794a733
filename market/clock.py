"""Clock and timestamp parsing.

An instant is a tz-aware ``datetime``: the absolute point in time plus the
caller's timezone context. Parsing keeps whatever offset/zone the caller used;
only naive values are given a timezone (``default_tz``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Protocol
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")

# Epoch values need a sign, a fraction or at least 9 digits; shorter digit
# runs such as "20250106" are ISO-8601 basic dates.
_NUMERIC_EPOCH_RE = re.compile(r"^(?:[+-]\d+(?:\.\d+)?|\d+\.\d+|\d{9,})$")
_BASIC_DATE_RE = re.compile(r"^\d{8}$")


class Clock(Protocol):
    def now(self) -> datetime: ...


@dataclass(frozen=True)
class SystemClock:
    """Wall clock. With ``tz`` unset, "now" carries the host's local zone."""

    tz: tzinfo | None = None

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(tz=self.tz)


@dataclass(frozen=True)
class FixedClock:
    """Clock pinned to one instant (tests, replays)."""

    instant: datetime

    def now(self) -> datetime:
        return self.instant


def ensure_aware(dt: datetime, default_tz: tzinfo = UTC) -> datetime:
    """Attach ``default_tz`` to a naive datetime; aware values pass through."""
    if not isinstance(dt, datetime):
        raise TypeError("ensure_aware expects a datetime")
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=default_tz)
    return dt


def parse_instant(x: Any, default_tz: tzinfo = UTC) -> datetime:
    """Parse a caller timestamp into a tz-aware datetime.

    Supports:
    - ``datetime`` (naive gets ``default_tz``)
    - ISO-8601 strings, with ``Z`` or an explicit offset, and basic dates
      (``YYYYMMDD``)
    - epoch seconds (int/float) and epoch milliseconds (abs(value) >= 1e12),
      returned in UTC; digit-only strings count as epoch from 9 digits up
    """
    if x is None:
        raise TypeError("timestamp is None")

    if isinstance(x, datetime):
        return ensure_aware(x, default_tz)

    if isinstance(x, bool):
        raise TypeError("unsupported timestamp type: bool")

    if isinstance(x, (int, float)):
        v = float(x)
        seconds = (v / 1000.0) if abs(v) >= 1e12 else v
        return datetime.fromtimestamp(seconds, tz=UTC)

    if isinstance(x, str):
        s = x.strip()
        if not s:
            raise ValueError("timestamp string is empty")
        if _NUMERIC_EPOCH_RE.match(s):
            return parse_instant(float(s), default_tz)
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        try:
            if _BASIC_DATE_RE.match(s):
                dt = datetime.strptime(s, "%Y%m%d")
            else:
                dt = datetime.fromisoformat(s)
        except ValueError as e:
            raise ValueError(f"unparseable timestamp string: {x!r}") from e
        return ensure_aware(dt, default_tz)

    raise TypeError(f"unsupported timestamp type: {type(x).__name__}")
