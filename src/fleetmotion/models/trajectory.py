"""Trajectory samples and route search results."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleetmotion.models.geo import Coordinate, Route


class SampleSource(StrEnum):
    SIMULATED = "simulated"
    LIVE = "live"


class TrajectorySample(BaseModel):
    """The current rendered state of one entity.

    The trajectory store keeps exactly one of these per entity id and
    replaces it on every write; history is not retained here.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entity_id: str
    position: Coordinate
    heading_degrees: float = Field(default=0.0, description="Compass heading, normalized to [0, 360).")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source: SampleSource = SampleSource.SIMULATED

    @field_validator("entity_id")
    @classmethod
    def _normalize_entity_id(cls, value: str) -> str:
        entity_id = value.strip()
        if not entity_id:
            raise ValueError("entity_id must be non-empty")
        return entity_id

    @field_validator("heading_degrees")
    @classmethod
    def _normalize_heading(cls, value: float) -> float:
        # fleetmotion.geo imports this package; resolve it at call time.
        from fleetmotion.geo import normalize_heading

        return normalize_heading(value)

    @field_validator("updated_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class SearchStatus(StrEnum):
    STARTED = "started"
    INVALID_INPUT = "invalid_input"
    GEOCODE_FAILED = "geocode_failed"
    NO_ROUTE = "no_route"


class RouteSearchResult(BaseModel):
    """Outcome of a host-initiated route search or demo start."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    status: SearchStatus
    route: Route = Field(default_factory=Route)
    start: Coordinate | None = None
    destination: Coordinate | None = None
    message: str = ""

    @property
    def started(self) -> bool:
        return self.status == SearchStatus.STARTED
