from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict
import yaml

DEFAULT_ORDERS_PATH = "config/orders.yaml"
DEFAULT_CALENDAR_PATH = "config/market_calendar.yaml"

def load_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def load_optional_yaml(path: str | Path | None) -> Dict[str, Any]:
    """Like load_yaml, but a missing file yields {} so built-in defaults apply."""
    if path is None:
        return {}
    try:
        return load_yaml(path)
    except FileNotFoundError:
        return {}

@dataclass(frozen=True)
class LoadedConfig:
    orders: Dict[str, Any]
    calendar: Dict[str, Any]

def load_all(
    orders_path: str | Path | None = DEFAULT_ORDERS_PATH,
    calendar_path: str | Path | None = DEFAULT_CALENDAR_PATH,
) -> LoadedConfig:
    return LoadedConfig(
        orders=load_optional_yaml(orders_path),
        calendar=load_optional_yaml(calendar_path),
    )
