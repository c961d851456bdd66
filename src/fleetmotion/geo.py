"""Bearing and interpolation primitives.

All functions are pure. Headings are compass degrees: 0 is north,
increasing clockwise, normalized to ``[0, 360)``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from fleetmotion.models.geo import Coordinate


def normalize_heading(value: float) -> float:
    """Wrap *value* into ``[0, 360)``."""
    heading = value % 360.0
    # Tiny negative inputs round up to exactly 360.0.
    return 0.0 if heading >= 360.0 else heading


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    return -90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0


def bearing(origin: Coordinate, destination: Coordinate) -> float:
    """Initial great-circle bearing from *origin* to *destination*.

    Identical points have no direction; ``0.0`` (north) is returned.
    """
    if origin == destination:
        return 0.0

    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(destination.latitude)
    dlon = math.radians(destination.longitude - origin.longitude)

    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return normalize_heading(math.degrees(math.atan2(x, y)))


def interpolate(origin: Coordinate, destination: Coordinate, t: float) -> Coordinate:
    """Linear per-axis interpolation between two coordinates.

    Good enough at city scale; this is not a geodesic and drifts over long
    distances or across the antimeridian. *t* is clamped to ``[0, 1]``.
    """
    if t <= 0.0:
        return origin
    if t >= 1.0:
        return destination
    return Coordinate(
        latitude=origin.latitude + (destination.latitude - origin.latitude) * t,
        longitude=origin.longitude + (destination.longitude - origin.longitude) * t,
    )


def bounds(points: Iterable[Coordinate]) -> tuple[Coordinate, Coordinate] | None:
    """South-west and north-east corners enclosing *points*, or ``None``."""
    lats: list[float] = []
    lngs: list[float] = []
    for point in points:
        lats.append(point.latitude)
        lngs.append(point.longitude)
    if not lats:
        return None
    return (
        Coordinate(latitude=min(lats), longitude=min(lngs)),
        Coordinate(latitude=max(lats), longitude=max(lngs)),
    )
