"""Live position ingestion helpers.

Translates decoded transport payloads into :class:`PositionEvent` objects.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from fleetmotion.models.position import PositionEvent

_logger = logging.getLogger(__name__)


def build_position_event(payload: Any) -> PositionEvent | None:
    """Build a position event from a decoded payload.

    Accepts a JSON object (``{"vehicleId": ..., "lat": ..., "lng": ...}``)
    or the positional hub form ``[vehicleId, lat, lng]``. Returns ``None``
    for anything that does not describe a valid position.
    """
    if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes, bytearray)):
        if len(payload) < 3:
            _logger.debug("Positional payload too short: %r", payload)
            return None
        payload = {"vehicleId": payload[0], "lat": payload[1], "lng": payload[2]}

    if not isinstance(payload, dict):
        _logger.debug("Ignoring non-object position payload: %r", payload)
        return None

    try:
        return PositionEvent.model_validate(payload)
    except ValidationError:
        _logger.debug("Invalid position payload %r", payload, exc_info=True)
        return None


def decode_position_payload(raw: bytes) -> PositionEvent | None:
    """Decode a UTF-8 JSON transport message into a position event."""
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        _logger.debug("Position payload is not JSON (%d bytes)", len(raw), exc_info=True)
        return None
    return build_position_event(parsed)
