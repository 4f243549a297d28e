from __future__ import annotations

from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def to_dict(instance: Any, *, exclude: Optional[Iterable[str]] = None) -> dict:
    """Dataclass -> JSON-ready dict (enums by value, dates ISO, decimals as float)."""
    skip = set(exclude or ())
    output = {}
    for f in fields(instance):
        if f.name in skip:
            continue
        output[f.name] = _plain(getattr(instance, f.name))
    return output


def to_dict_list(items: Iterable[Any], *, exclude: Optional[Iterable[str]] = None) -> list[dict]:
    return [to_dict(item, exclude=exclude) for item in items]
