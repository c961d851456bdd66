"""Helpers for safe debug logging.

Lookup requests carry the routing API key as a query parameter; it must
never reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping

_SENSITIVE_PARAMS: frozenset[str] = frozenset({"api_key", "apikey", "key", "token", "password"})


def redact_params(params: Mapping[str, str], *, max_string: int = 200) -> dict[str, str]:
    """Copy of query *params* with secrets masked and long values truncated."""
    redacted: dict[str, str] = {}
    for name, value in params.items():
        if name.lower() in _SENSITIVE_PARAMS:
            redacted[name] = "<redacted>"
        elif len(value) > max_string:
            redacted[name] = f"{value[:max_string]}…<truncated>"
        else:
            redacted[name] = value
    return redacted
