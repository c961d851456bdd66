"""Value types shared across fleetmotion."""

from fleetmotion.models.geo import Coordinate, Route
from fleetmotion.models.position import PositionEvent
from fleetmotion.models.trajectory import RouteSearchResult, SampleSource, SearchStatus, TrajectorySample

__all__ = [
    "Coordinate",
    "PositionEvent",
    "Route",
    "RouteSearchResult",
    "SampleSource",
    "SearchStatus",
    "TrajectorySample",
]
