from __future__ import annotations
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from common.decimal_math import to_decimal
from common.errors import InvalidPrecisionError

DEFAULT_SHARE_PRECISION = 3
DEFAULT_WEIGHT_TOLERANCE = Decimal("0.0001")
DEFAULT_IDEMPOTENCY_TTL_HOURS = 24


@dataclass(frozen=True)
class OrderPolicy:
    raw: Dict[str, Any]

    @property
    def share_precision(self) -> int:
        env = os.getenv("SHARE_DECIMAL_PRECISION")
        if env is not None and env.strip():
            value: Any = env.strip()
        else:
            value = (self.raw.get("orders") or {}).get("share_decimal_precision", DEFAULT_SHARE_PRECISION)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise InvalidPrecisionError(f"Share precision must be an integer, got {value!r}") from e

    @property
    def weight_tolerance(self) -> Decimal:
        value = (self.raw.get("validation") or {}).get("weight_tolerance", DEFAULT_WEIGHT_TOLERANCE)
        return to_decimal(value, "validation.weight_tolerance")

    @property
    def idempotency_ttl_hours(self) -> float:
        return float((self.raw.get("idempotency") or {}).get("ttl_hours", DEFAULT_IDEMPOTENCY_TTL_HOURS))
