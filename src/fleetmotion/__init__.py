"""fleetmotion - Vehicle-motion simulation and live-tracking engine for map UIs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fleetmotion")
except PackageNotFoundError:
    __version__ = "0+local"

from fleetmotion.animator import AnimationCursor, AnimatorState, RouteAnimator
from fleetmotion.config import LiveStreamConfig, MotionConfig
from fleetmotion.engine import MotionEngine
from fleetmotion.exceptions import (
    FleetConfigError,
    FleetMotionError,
    LiveStreamError,
    RouteLookupError,
)
from fleetmotion.geo import bearing, interpolate, normalize_heading
from fleetmotion.heading import HeadingSmoother, HeadingState, smooth
from fleetmotion.live import LivePositionSource, LiveStreamListener, MockPositionSource, MqttPositionSource
from fleetmotion.lookup import OpenRouteServiceLookup, RouteLookupService
from fleetmotion.models import (
    Coordinate,
    PositionEvent,
    Route,
    RouteSearchResult,
    SampleSource,
    SearchStatus,
    TrajectorySample,
)
from fleetmotion.render import LoggingRenderer, MapRenderer, MarkerIcon, PolylineStyle
from fleetmotion.scheduler import LoopTickScheduler, TickHandle, TickScheduler
from fleetmotion.state.store import TrajectoryStore
from fleetmotion.tracker import LiveTracker

__all__ = [
    "__version__",
    "AnimationCursor",
    "AnimatorState",
    "Coordinate",
    "FleetConfigError",
    "FleetMotionError",
    "HeadingSmoother",
    "HeadingState",
    "LivePositionSource",
    "LiveStreamConfig",
    "LiveStreamError",
    "LiveStreamListener",
    "LiveTracker",
    "LoggingRenderer",
    "LoopTickScheduler",
    "MapRenderer",
    "MarkerIcon",
    "MockPositionSource",
    "MotionConfig",
    "MotionEngine",
    "MqttPositionSource",
    "OpenRouteServiceLookup",
    "PolylineStyle",
    "PositionEvent",
    "Route",
    "RouteAnimator",
    "RouteLookupError",
    "RouteLookupService",
    "RouteSearchResult",
    "SampleSource",
    "SearchStatus",
    "TickHandle",
    "TickScheduler",
    "TrajectorySample",
    "TrajectoryStore",
    "bearing",
    "interpolate",
    "normalize_heading",
    "smooth",
]
