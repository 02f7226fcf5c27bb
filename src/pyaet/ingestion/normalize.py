"""Normalization helpers.

Centralizes parsing of loosely typed backend payloads.  Everything the wider
system encodes as strings (plates, ``"STATE:status:date"`` tuples,
``"STATE:number"`` AET references) is decoded here exactly once.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

_PLATE_STRIP = re.compile(r"[\s\-]+")


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def normalize_plate(value: Any) -> str | None:
    """Canonical plate form: upper case, no whitespace or hyphens.

    ``"bcb-0886"`` and ``"BCB0886"`` are the same vehicle.
    """
    text = safe_str(value)
    if text is None:
        return None
    plate = _PLATE_STRIP.sub("", text).upper()
    return plate or None


def normalize_jurisdiction(value: Any) -> str | None:
    text = safe_str(value)
    return text.upper() if text else None


def parse_date(value: Any) -> date | None:
    """Parse an ISO date or datetime string (``Z`` suffix allowed).

    Datetimes are reduced to their calendar date; day counts are computed
    on whole days.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = safe_str(value)
    if text is None:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def split_state_status(value: Any) -> tuple[str, str, date | None] | None:
    """Split a ``"STATE:status[:date]"`` entry.

    The date part may itself contain colons (ISO timestamps), so only the
    first two separators are significant.
    """
    text = safe_str(value)
    if text is None:
        return None
    parts = text.split(":", 2)
    if len(parts) < 2:
        return None
    state = normalize_jurisdiction(parts[0])
    status = parts[1].strip().lower()
    if not state or not status:
        return None
    expires = parse_date(parts[2]) if len(parts) == 3 else None
    return state, status, expires


def split_state_reference(value: Any) -> tuple[str, str] | None:
    """Split a ``"STATE:reference"`` entry (e.g. per-state AET numbers)."""
    text = safe_str(value)
    if text is None or ":" not in text:
        return None
    state, _, reference = text.partition(":")
    state_code = normalize_jurisdiction(state)
    reference = reference.strip()
    if not state_code or not reference:
        return None
    return state_code, reference


def plate_list(value: Any) -> list[str]:
    """Normalize a list of plates, dropping blanks and duplicates (order kept)."""
    if value is None:
        return []
    items = [value] if isinstance(value, str) else list(value)
    seen: dict[str, None] = {}
    for item in items:
        plate = normalize_plate(item)
        if plate is not None:
            seen.setdefault(plate, None)
    return list(seen)
