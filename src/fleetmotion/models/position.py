"""Live position event model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from fleetmotion.ingestion.normalize import normalize_timestamp_seconds, safe_float, safe_str
from fleetmotion.models.geo import Coordinate

_LATITUDE_KEYS = ("lat", "latitude")
_LONGITUDE_KEYS = ("lng", "lon", "longitude")


def _first_present(values: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in values and values[key] is not None:
            return values[key]
    return None


class PositionEvent(BaseModel):
    """A single reported position for one tracked entity.

    Accepts either a nested ``position`` or flat ``lat``/``lng`` keys, and
    the ``vehicleId`` spelling used by the fleet hub.

    Parameters
    ----------
    entity_id : str
        Stable id of the tracked entity.
    position : Coordinate
        Reported position.
    timestamp : float or None
        Payload timestamp in epoch seconds (milliseconds are converted).
    raw : dict
        Original payload.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    entity_id: str = Field(
        validation_alias=AliasChoices("entity_id", "entityId", "vehicleId", "vehicle_id", "id"),
    )
    position: Coordinate
    timestamp: float | None = Field(default=None, validation_alias=AliasChoices("timestamp", "time", "ts"))
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _lift_flat_position(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        if "position" not in merged:
            lat = safe_float(_first_present(values, _LATITUDE_KEYS))
            lng = safe_float(_first_present(values, _LONGITUDE_KEYS))
            if lat is not None and lng is not None:
                merged["position"] = {"latitude": lat, "longitude": lng}
        merged.setdefault("raw", values)
        return merged

    @field_validator("entity_id", mode="before")
    @classmethod
    def _coerce_entity_id(cls, value: Any) -> str:
        text = safe_str(value)
        entity_id = text.strip() if text is not None else ""
        if not entity_id:
            raise ValueError("entity_id must be non-empty")
        return entity_id

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> float | None:
        return normalize_timestamp_seconds(value)
