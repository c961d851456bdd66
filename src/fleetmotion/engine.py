"""Motion engine: the composition root.

Owns the trajectory store, the route animator and its tick scheduler, the
live tracker and the live stream subscription, and forwards every store
change to the map renderer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from fleetmotion.animator import AnimatorState, RouteAnimator
from fleetmotion.config import MotionConfig
from fleetmotion.exceptions import FleetMotionError
from fleetmotion.live import LivePositionSource
from fleetmotion.lookup import OpenRouteServiceLookup, RouteLookupService
from fleetmotion.models.geo import Coordinate, Route
from fleetmotion.models.position import PositionEvent
from fleetmotion.models.trajectory import RouteSearchResult, SearchStatus, TrajectorySample
from fleetmotion.render import (
    DEFAULT_MARKER_ICON,
    ROUTE_STYLE,
    LoggingRenderer,
    MapRenderer,
    MarkerIcon,
    traveled_style,
)
from fleetmotion.scheduler import LoopTickScheduler, TickScheduler
from fleetmotion.state.events import ChangeKind, TrajectoryChange
from fleetmotion.state.store import TrajectoryStore
from fleetmotion.tracker import LiveTracker

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _LiveSubscription:
    """Listener handed to a live source; goes inert once detached."""

    def __init__(self, engine: MotionEngine, source: LivePositionSource) -> None:
        self._engine = engine
        self.source = source
        self.active = True

    def on_position(self, event: PositionEvent) -> None:
        if self.active:
            self._engine._on_live_position(event)

    def on_reconnect(self) -> None:
        if self.active:
            self._engine._on_live_reconnect()


class MotionEngine:
    """Simulated and live vehicle motion behind one host-facing API.

    Usage::

        async with MotionEngine(config, renderer=my_map) as engine:
            result = await engine.search("Bole International Airport")
            await engine.attach_live_stream(MqttPositionSource(config.live))

    The demo entity (``config.demo_entity_id``) is driven only by the
    animator; live events for that id are ignored so that two writers
    never target the same entity.
    """

    def __init__(
        self,
        config: MotionConfig | None = None,
        *,
        renderer: MapRenderer | None = None,
        lookup: RouteLookupService | None = None,
        scheduler: TickScheduler | None = None,
        clock: Callable[[], datetime] = _utcnow,
        marker_icon: MarkerIcon = DEFAULT_MARKER_ICON,
    ) -> None:
        self._config = config or MotionConfig()
        self._renderer: MapRenderer = renderer or LoggingRenderer()
        self._lookup = lookup
        self._owned_lookup: OpenRouteServiceLookup | None = None
        self._scheduler = scheduler or LoopTickScheduler()
        self._marker_icon = marker_icon
        self.store = TrajectoryStore()
        self._animator = RouteAnimator(
            self.store,
            self._scheduler,
            self._config,
            clock=clock,
            on_finished=self._on_animation_finished,
        )
        self._tracker = LiveTracker(self.store, self._config, clock=clock)
        self._subscription: _LiveSubscription | None = None
        self._unsubscribe_store = self.store.subscribe(self._render_change)
        self._closed = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MotionEngine:
        if self._lookup is None:
            self._owned_lookup = OpenRouteServiceLookup(self._config)
            await self._owned_lookup.__aenter__()
            self._lookup = self._owned_lookup
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the tick scheduler, the live subscription and owned clients."""
        if self._closed:
            return
        self._closed = True
        self.stop_demo_route()
        if isinstance(self._scheduler, LoopTickScheduler):
            self._scheduler.cancel_all()
        await self.detach_live_stream()
        if self._owned_lookup is not None:
            await self._owned_lookup.close()
            self._owned_lookup = None
            self._lookup = None
        self._unsubscribe_store()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> MotionConfig:
        return self._config

    @property
    def animator(self) -> RouteAnimator:
        return self._animator

    @property
    def tracker(self) -> LiveTracker:
        return self._tracker

    @property
    def is_demo_running(self) -> bool:
        return self._animator.is_running

    @property
    def is_live_attached(self) -> bool:
        return self._subscription is not None

    def get_snapshot(self, entity_id: str) -> TrajectorySample | None:
        return self.store.get(entity_id)

    def get_entity_snapshot(self, entity_id: str) -> TrajectorySample | None:
        """Host-facing alias of :meth:`get_snapshot`."""
        return self.get_snapshot(entity_id)

    # ------------------------------------------------------------------
    # Simulated route
    # ------------------------------------------------------------------

    def run_demo_route(self, route: Route) -> AnimatorState:
        """Animate the demo entity along *route*, replacing any running route."""
        self._ensure_open()
        return self._animator.start(route, self._config.demo_entity_id)

    def stop_demo_route(self) -> bool:
        return self._animator.cancel()

    def stop(self) -> bool:
        """Host-facing stop: halts the simulated vehicle where it is."""
        return self.stop_demo_route()

    async def start_demo(self) -> RouteSearchResult:
        """Route between the configured demo endpoints and animate it."""
        start = Coordinate.of(*self._config.demo_start)
        end = Coordinate.of(*self._config.demo_end)
        return await self._route_and_run(start, end)

    async def search(self, destination_text: str, start: Coordinate | None = None) -> RouteSearchResult:
        """Geocode *destination_text*, route to it and animate the demo entity.

        The trip starts at *start*, else at the demo entity's current
        position, else at the configured demo start point.
        """
        text = destination_text.strip()
        if not text:
            return RouteSearchResult(status=SearchStatus.INVALID_INPUT, message="Please provide a destination location.")

        lookup = self._require_lookup()
        origin = start if start is not None else self._current_demo_position()
        if origin is None:
            origin = Coordinate.of(*self._config.demo_start)
        destination = await lookup.geocode(text)
        if destination is None:
            _logger.warning("Could not resolve destination %r", text)
            return RouteSearchResult(
                status=SearchStatus.GEOCODE_FAILED,
                start=origin,
                message=f"Could not fetch coordinates for {text!r}.",
            )
        return await self._route_and_run(origin, destination)

    async def _route_and_run(self, start: Coordinate, end: Coordinate) -> RouteSearchResult:
        self._ensure_open()
        lookup = self._require_lookup()
        route = await lookup.fetch_route(start, end)
        if len(route) < 2:
            _logger.warning("No route available from %s to %s", start.as_tuple(), end.as_tuple())
            return RouteSearchResult(
                status=SearchStatus.NO_ROUTE,
                start=start,
                destination=end,
                message="Could not fetch a valid route.",
            )

        self._call_renderer("remove_all_polylines")
        self._call_renderer("draw_polyline", list(route.waypoints), ROUTE_STYLE)
        self._call_renderer("fit_bounds", list(route.waypoints), self._config.fit_bounds_padding)
        self.run_demo_route(route)
        return RouteSearchResult(status=SearchStatus.STARTED, route=route, start=start, destination=end)

    def _current_demo_position(self) -> Coordinate | None:
        sample = self.store.get(self._config.demo_entity_id)
        return sample.position if sample is not None else None

    def _on_animation_finished(self, state: AnimatorState) -> None:
        _logger.debug("Demo route finished: %s", state)

    # ------------------------------------------------------------------
    # Live stream
    # ------------------------------------------------------------------

    async def attach_live_stream(self, source: LivePositionSource) -> None:
        """Subscribe to *source*, replacing any attached stream."""
        self._ensure_open()
        await self.detach_live_stream()
        subscription = _LiveSubscription(self, source)
        self._subscription = subscription
        try:
            await source.connect(subscription)
        except Exception:
            subscription.active = False
            if self._subscription is subscription:
                self._subscription = None
            raise
        _logger.info("Live stream attached: %s", type(source).__name__)

    async def detach_live_stream(self) -> None:
        """Unsubscribe; events still in flight from the old source are dropped."""
        subscription = self._subscription
        self._subscription = None
        if subscription is None:
            return
        subscription.active = False
        try:
            await subscription.source.disconnect()
        except Exception:
            _logger.warning("Live stream disconnect failed", exc_info=True)
        _logger.info("Live stream detached: %s", type(subscription.source).__name__)

    def _on_live_position(self, event: PositionEvent) -> None:
        if event.entity_id == self._config.demo_entity_id:
            _logger.debug("Ignoring live position for simulated entity %s", event.entity_id)
            return
        self._tracker.apply(event)

    def _on_live_reconnect(self) -> None:
        self._tracker.remove_all()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_change(self, change: TrajectoryChange) -> None:
        if change.kind == ChangeKind.SAMPLE and change.sample is not None:
            sample = change.sample
            self._call_renderer(
                "place_or_move_marker",
                sample.entity_id,
                sample.position,
                sample.heading_degrees,
                self._marker_icon,
            )
        elif change.kind == ChangeKind.PATH:
            self._call_renderer("draw_polyline", list(change.path), traveled_style(change.entity_id))
        elif change.kind == ChangeKind.REMOVED:
            self._call_renderer("remove_marker", change.entity_id)
            self._call_renderer("draw_polyline", [], traveled_style(change.entity_id))

    def _call_renderer(self, method: str, *args: Any) -> None:
        try:
            getattr(self._renderer, method)(*args)
        except Exception:
            _logger.warning("Renderer %s failed", method, exc_info=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise FleetMotionError("MotionEngine is closed")

    def _require_lookup(self) -> RouteLookupService:
        if self._lookup is None:
            raise FleetMotionError("No route lookup configured. Use 'async with MotionEngine(...) as engine:'")
        return self._lookup
