"""Coordinate and route value types."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """A WGS84 position in degrees.

    Parameters
    ----------
    latitude : float
        Latitude in ``[-90, 90]``.
    longitude : float
        Longitude in ``[-180, 180]``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        allow_inf_nan=False,
    )

    latitude: float = Field(ge=-90.0, le=90.0, validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(
        ge=-180.0,
        le=180.0,
        validation_alias=AliasChoices("longitude", "lng", "lon"),
    )

    @classmethod
    def of(cls, latitude: float, longitude: float) -> Coordinate:
        """Positional constructor: ``Coordinate.of(lat, lng)``."""
        return cls(latitude=latitude, longitude=longitude)

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class Route(BaseModel):
    """An ordered, immutable sequence of waypoints (travel order).

    Empty and single-point routes are valid; they simply produce no motion.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    waypoints: tuple[Coordinate, ...] = ()

    @classmethod
    def empty(cls) -> Route:
        return cls()

    @classmethod
    def from_points(cls, points: Iterable[Coordinate | tuple[float, float]]) -> Route:
        """Build a route from coordinates or ``(lat, lng)`` pairs."""
        waypoints: list[Coordinate] = []
        for point in points:
            if isinstance(point, Coordinate):
                waypoints.append(point)
            else:
                lat, lng = point
                waypoints.append(Coordinate.of(lat, lng))
        return cls(waypoints=tuple(waypoints))

    def __len__(self) -> int:
        return len(self.waypoints)

    def __getitem__(self, index: int) -> Coordinate:
        return self.waypoints[index]

    @property
    def is_empty(self) -> bool:
        return not self.waypoints
