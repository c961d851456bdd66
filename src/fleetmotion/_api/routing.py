"""OpenRouteService directions and geocoding endpoints.

Endpoints:
  - /v2/directions/{profile} (GeoJSON LineString route)
  - /geocode/search (GeoJSON Point features)

Both return ``[longitude, latitude]`` pairs.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fleetmotion._transport import Transport
from fleetmotion.config import MotionConfig
from fleetmotion.exceptions import RouteLookupError
from fleetmotion.geo import is_valid_coordinate
from fleetmotion.ingestion.normalize import safe_float
from fleetmotion.models.geo import Coordinate, Route

_logger = logging.getLogger(__name__)

GEOCODE_ENDPOINT = "/geocode/search"


class _Geometry(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str = ""
    coordinates: list[Any] = Field(default_factory=list)


class _Feature(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    geometry: _Geometry


class _FeatureCollection(BaseModel):
    """Minimal Pydantic envelope for GeoJSON feature collections."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    features: list[_Feature] = Field(default_factory=list)


def _parse_collection(body: dict[str, Any], endpoint: str) -> _FeatureCollection:
    try:
        return _FeatureCollection.model_validate(body)
    except ValidationError as exc:
        raise RouteLookupError(f"Unexpected response shape from {endpoint}", endpoint=endpoint) from exc


def _lng_lat_to_coordinate(pair: Any) -> Coordinate | None:
    """Convert a GeoJSON ``[lng, lat, ...]`` position; ``None`` if unusable."""
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        return None
    lng = safe_float(pair[0])
    lat = safe_float(pair[1])
    if lat is None or lng is None or not is_valid_coordinate(lat, lng):
        return None
    return Coordinate(latitude=lat, longitude=lng)


def _format_lng_lat(point: Coordinate) -> str:
    return f"{point.longitude},{point.latitude}"


def _base_params(config: MotionConfig) -> dict[str, str]:
    params: dict[str, str] = {}
    if config.routing_api_key:
        params["api_key"] = config.routing_api_key
    return params


def parse_directions(body: dict[str, Any], endpoint: str) -> Route:
    """Extract the first route's waypoints from a directions response."""
    collection = _parse_collection(body, endpoint)
    if not collection.features:
        raise RouteLookupError(f"No route in response from {endpoint}", endpoint=endpoint)

    waypoints: list[Coordinate] = []
    dropped = 0
    for pair in collection.features[0].geometry.coordinates:
        point = _lng_lat_to_coordinate(pair)
        if point is None:
            dropped += 1
            continue
        waypoints.append(point)
    if dropped:
        _logger.debug("Dropped %d invalid route coordinate(s) from %s", dropped, endpoint)
    return Route(waypoints=tuple(waypoints))


def parse_geocode(body: dict[str, Any]) -> Coordinate | None:
    """Coordinate of the best geocoding match, or ``None``."""
    collection = _parse_collection(body, GEOCODE_ENDPOINT)
    for feature in collection.features:
        point = _lng_lat_to_coordinate(feature.geometry.coordinates)
        if point is not None:
            return point
    return None


async def fetch_directions(
    config: MotionConfig,
    transport: Transport,
    start: Coordinate,
    end: Coordinate,
) -> Route:
    """Fetch a driving route from *start* to *end*.

    Raises :class:`RouteLookupError` on transport failure or when the
    service returns no route.
    """
    endpoint = f"/v2/directions/{config.routing_profile}"
    params = _base_params(config)
    params.update(
        {
            "start": _format_lng_lat(start),
            "end": _format_lng_lat(end),
            "radiuses": f"{config.routing_radius_m},{config.routing_radius_m}",
        }
    )
    body = await transport.get_json(endpoint, params)
    route = parse_directions(body, endpoint)
    _logger.debug("Route from %s: %d waypoints", endpoint, len(route))
    return route


async def geocode_search(config: MotionConfig, transport: Transport, text: str) -> Coordinate | None:
    """Resolve free text to a coordinate; ``None`` when nothing matches."""
    params = _base_params(config)
    params.update({"text": text, "size": "1"})
    body = await transport.get_json(GEOCODE_ENDPOINT, params)
    point = parse_geocode(body)
    if point is None:
        _logger.debug("No geocoding results for %r", text)
    else:
        _logger.debug("Resolved %r to %s, %s", text, point.latitude, point.longitude)
    return point
