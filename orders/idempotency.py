from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import structlog

from common.errors import DuplicateRequestError
from market.clock import Clock, SystemClock

log = structlog.get_logger(__name__)

DEFAULT_TTL = timedelta(hours=24)


class IdempotencyStore:
    """Rejects a repeated idempotency key until its TTL lapses."""

    def __init__(self, ttl: timedelta = DEFAULT_TTL, clock: Optional[Clock] = None) -> None:
        self.ttl = ttl
        self.clock = clock or SystemClock()
        self._seen: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def check(self, key: Optional[str]) -> None:
        if not key:
            return
        now = self.clock.now()
        with self._lock:
            self._expire(now)
            if key in self._seen:
                log.warning("idempotency.duplicate", key=key)
                raise DuplicateRequestError("Duplicate request - idempotency key already processed")
            self._seen[key] = now
        log.debug("idempotency.registered", key=key)

    def _expire(self, now: datetime) -> None:
        expired = [k for k, ts in self._seen.items() if now - ts > self.ttl]
        for k in expired:
            del self._seen[k]

    def stats(self) -> Dict[str, Any]:
        now = self.clock.now()
        with self._lock:
            oldest = min(self._seen.values()) if self._seen else None
            active = len(self._seen)
        return {
            "active_keys": active,
            "oldest_key_age_mins": round((now - oldest).total_seconds() / 60) if oldest else 0,
        }
