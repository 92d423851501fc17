"""Defensive coercion of judgment payloads into bounded, well-typed values."""

from __future__ import annotations

import math
from typing import Any, List, Optional

from ..models import FLAG_TYPES, FLAG_YELLOW, Flag

DEFAULT_SCORE = 50
DEFAULT_SEVERITY = 5
DEFAULT_FLAG_CATEGORY = "verification"
DEFAULT_FLAG_MESSAGE = "Analysis concern detected"


def as_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def clamp_score(value: Any, *, default: int = DEFAULT_SCORE, low: int = 0, high: int = 100) -> int:
    number = as_number(value)
    if number is None:
        return default
    return int(round(min(high, max(low, number))))


def normalize_flag(raw: Any) -> Optional[Flag]:
    if not isinstance(raw, dict):
        return None
    flag_type = raw.get("type")
    category = raw.get("category")
    message = raw.get("message")
    severity = as_number(raw.get("severity"))
    return Flag(
        type=flag_type if flag_type in FLAG_TYPES else FLAG_YELLOW,
        category=category.strip() if isinstance(category, str) and category.strip() else DEFAULT_FLAG_CATEGORY,
        message=message.strip() if isinstance(message, str) and message.strip() else DEFAULT_FLAG_MESSAGE,
        severity=DEFAULT_SEVERITY if severity is None else int(round(min(10.0, max(1.0, severity)))),
    )


def normalize_flags(raw: Any) -> List[Flag]:
    if not isinstance(raw, list):
        return []
    flags: List[Flag] = []
    for item in raw:
        flag = normalize_flag(item)
        if flag is not None:
            flags.append(flag)
    return flags


def normalize_string_list(raw: Any, *, limit: int | None = None) -> List[str]:
    if not isinstance(raw, list):
        return []
    items: List[str] = []
    for item in raw:
        if isinstance(item, str):
            text = item.strip()
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            text = str(item)
        else:
            continue
        if text:
            items.append(text)
    if limit is not None:
        return items[:limit]
    return items


def normalize_bool(raw: Any, default: bool) -> bool:
    return raw if isinstance(raw, bool) else default


def normalize_text(raw: Any, default: str = "") -> str:
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return default


def rank_flags(flags: List[Flag]) -> List[Flag]:
    """Red before yellow, then severity descending; ties keep their order."""
    return sorted(flags, key=lambda flag: (flag.type != "red", -flag.severity))


__all__ = [
    "DEFAULT_FLAG_CATEGORY",
    "DEFAULT_SCORE",
    "DEFAULT_SEVERITY",
    "as_number",
    "clamp_score",
    "normalize_bool",
    "normalize_flag",
    "normalize_flags",
    "normalize_string_list",
    "normalize_text",
    "rank_flags",
]
