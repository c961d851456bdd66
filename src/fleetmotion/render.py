"""Map renderer boundary.

The engine pushes every trajectory change to a :class:`MapRenderer`. The
renderer owns all drawing state; the engine never reads it back.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from fleetmotion.geo import bounds
from fleetmotion.models.geo import Coordinate

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PolylineStyle:
    """Polyline appearance.

    ``name`` identifies the layer: drawing a polyline whose name is already
    on the map replaces the previous one.
    """

    name: str
    color: str
    weight: int = 8
    opacity: float = 1.0


@dataclass(frozen=True)
class MarkerIcon:
    url: str = "marker-icon.png"
    retina_url: str = "/marker-icon-2x.png"
    shadow_url: str = "/marker-shadow.png"
    size: tuple[int, int] = (25, 41)
    anchor: tuple[int, int] = (12, 41)
    popup_anchor: tuple[int, int] = (1, -34)
    shadow_size: tuple[int, int] = (41, 41)


DEFAULT_MARKER_ICON = MarkerIcon()
ROUTE_STYLE = PolylineStyle(name="route", color="blue", weight=8, opacity=0.7)


def traveled_style(entity_id: str) -> PolylineStyle:
    """Style of the traveled-path overlay for one entity."""
    return PolylineStyle(name=f"traveled:{entity_id}", color="red", weight=8, opacity=0.9)


class MapRenderer(Protocol):
    def draw_polyline(self, points: Sequence[Coordinate], style: PolylineStyle) -> None:
        ...

    def place_or_move_marker(
        self,
        entity_id: str,
        position: Coordinate,
        rotation_degrees: float,
        icon: MarkerIcon,
    ) -> None:
        ...

    def remove_marker(self, entity_id: str) -> None:
        ...

    def fit_bounds(self, points: Sequence[Coordinate], padding: int) -> None:
        ...

    def remove_all_polylines(self) -> None:
        ...


class LoggingRenderer:
    """Renderer that only logs what it would draw."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or _logger

    def draw_polyline(self, points: Sequence[Coordinate], style: PolylineStyle) -> None:
        self._logger.debug("Polyline %s (%s): %d points", style.name, style.color, len(points))

    def place_or_move_marker(
        self,
        entity_id: str,
        position: Coordinate,
        rotation_degrees: float,
        icon: MarkerIcon,
    ) -> None:
        self._logger.info(
            "%s location: Latitude: %.6f, Longitude: %.6f, Heading: %.1f",
            entity_id,
            position.latitude,
            position.longitude,
            rotation_degrees,
        )

    def remove_marker(self, entity_id: str) -> None:
        self._logger.debug("Marker %s removed", entity_id)

    def fit_bounds(self, points: Sequence[Coordinate], padding: int) -> None:
        corners = bounds(points)
        if corners is None:
            return
        south_west, north_east = corners
        self._logger.debug(
            "Fit bounds %s -> %s (padding %d)",
            south_west.as_tuple(),
            north_east.as_tuple(),
            padding,
        )

    def remove_all_polylines(self) -> None:
        self._logger.debug("All polylines removed")
