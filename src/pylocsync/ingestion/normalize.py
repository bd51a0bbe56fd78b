"""Normalization helpers.

Centralizes defensive parsing of sensor fixes and broker payloads.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def first_present(data: Mapping[str, Any], *keys: str) -> Any:
    """Return the value of the first key in *keys* that is present and not ``None``.

    Unlike chaining ``or``, a legitimate ``0`` / ``0.0`` (equator, prime
    meridian, standing still) is returned rather than skipped.
    """
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None
