"""Normalization helpers.

Centralizes lenient parsing of transport payload values.
"""

from __future__ import annotations

import math
from typing import Any

from fleetmotion._constants import MS_TIMESTAMP_THRESHOLD


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def normalize_timestamp_seconds(value: Any) -> float | None:
    """Normalize payload timestamps to epoch seconds.

    - Empty/missing -> None
    - <= 0 -> None
    - Milliseconds (> 1e11) -> seconds
    """

    ts = safe_float(value)
    if ts is None or ts <= 0:
        return None
    if ts > MS_TIMESTAMP_THRESHOLD:
        ts /= 1000.0
    return ts
