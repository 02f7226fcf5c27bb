"""Shared helpers for backend endpoint modules.

It is internal to pyaet and may change at any time.
"""

from __future__ import annotations

from typing import Any

from pyaet.exceptions import AetApiError


def expect_list(payload: Any, *, endpoint: str) -> list[Any]:
    """Return *payload* as a list of records.

    Accepts a bare JSON array or an object wrapping it under ``data`` or
    ``items``.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("data", "items"):
            inner = payload.get(key)
            if isinstance(inner, list):
                return inner
    raise AetApiError(
        f"{endpoint} returned {type(payload).__name__}, expected a list",
        code="unexpected_shape",
        endpoint=endpoint,
    )
