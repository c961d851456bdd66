"""Route animator.

Drives one simulated entity along a route, turning waypoint-granularity
input into tick-granularity (position, heading) samples in the trajectory
store.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from fleetmotion.config import MotionConfig
from fleetmotion.geo import bearing, interpolate
from fleetmotion.heading import HeadingSmoother
from fleetmotion.models.geo import Coordinate, Route
from fleetmotion.models.trajectory import SampleSource, TrajectorySample
from fleetmotion.scheduler import TickHandle, TickScheduler
from fleetmotion.state.store import TrajectoryStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AnimatorState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class AnimationCursor:
    """Position within a route: segment index plus progress along it.

    Progress is kept as an integer step count so that a segment always
    takes exactly ``steps_per_segment`` ticks regardless of float drift.
    """

    route_index: int = 0
    step: int = 0
    steps_per_segment: int = 1

    @property
    def segment_progress(self) -> float:
        return self.step / self.steps_per_segment


class RouteAnimator:
    """Animate one entity along a route on a tick scheduler.

    States: ``IDLE -> RUNNING -> (COMPLETED | CANCELLED)``. Starting a new
    route cancels the running one first; ticks left over from an earlier
    run are ignored.
    """

    def __init__(
        self,
        store: TrajectoryStore,
        scheduler: TickScheduler,
        config: MotionConfig,
        *,
        clock: Callable[[], datetime] = _utcnow,
        on_finished: Callable[[AnimatorState], None] | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._config = config
        self._clock = clock
        self._on_finished = on_finished
        self._smoother = HeadingSmoother(config.animation_heading_weight)
        self._state = AnimatorState.IDLE
        self._route = Route.empty()
        self._entity_id = config.demo_entity_id
        self._cursor = AnimationCursor(steps_per_segment=config.steps_per_segment)
        self._handle: TickHandle | None = None
        self._generation = 0

    @property
    def state(self) -> AnimatorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == AnimatorState.RUNNING

    @property
    def route(self) -> Route:
        return self._route

    @property
    def entity_id(self) -> str:
        return self._entity_id

    @property
    def cursor(self) -> AnimationCursor:
        cursor = self._cursor
        return AnimationCursor(cursor.route_index, cursor.step, cursor.steps_per_segment)

    def start(self, route: Route, entity_id: str | None = None) -> AnimatorState:
        """Start animating *route*, replacing any running animation."""
        if self._state == AnimatorState.RUNNING:
            self.cancel()

        self._generation += 1
        self._route = route
        self._entity_id = entity_id or self._config.demo_entity_id
        self._cursor = AnimationCursor(steps_per_segment=self._config.steps_per_segment)

        if len(route) < 2:
            _logger.info("Route for %s has %d point(s); nothing to animate", self._entity_id, len(route))
            self._finish(AnimatorState.COMPLETED)
            return self._state

        first, second = route[0], route[1]
        heading = self._smoother.seed(self._entity_id, bearing(first, second))
        self._store.reset_path(self._entity_id, first)
        self._write(first, heading)

        self._state = AnimatorState.RUNNING
        generation = self._generation
        try:
            self._handle = self._scheduler.start(self._config.tick_interval, lambda: self._tick(generation))
        except Exception:
            self._finish(AnimatorState.CANCELLED)
            raise
        _logger.info(
            "Simulation started for %s: %d waypoints, %d ticks per segment",
            self._entity_id,
            len(route),
            self._cursor.steps_per_segment,
        )
        return self._state

    def cancel(self) -> bool:
        """Stop a running animation. Returns ``False`` when not running."""
        if self._state != AnimatorState.RUNNING:
            return False
        self._finish(AnimatorState.CANCELLED)
        _logger.info("Simulation stopped for %s", self._entity_id)
        return True

    def _tick(self, generation: int) -> None:
        if generation != self._generation or self._state != AnimatorState.RUNNING:
            return
        try:
            self._advance()
        except Exception:
            # The scheduler stops ticking on error; leave a terminal state behind.
            self._finish(AnimatorState.CANCELLED)
            raise

    def _advance(self) -> None:
        cursor = self._cursor
        origin = self._route[cursor.route_index]
        destination = self._route[cursor.route_index + 1]
        cursor.step += 1

        if origin == destination:
            # Zero-length segment has no direction; keep the current heading.
            heading = self._smoother.current(self._entity_id) or 0.0
        else:
            heading = self._smoother.observe(self._entity_id, bearing(origin, destination))

        if cursor.step < cursor.steps_per_segment:
            self._write(interpolate(origin, destination, cursor.segment_progress), heading)
            return

        cursor.route_index += 1
        cursor.step = 0
        self._write(destination, heading)
        self._store.append_path(self._entity_id, destination)
        _logger.debug(
            "Simulated %s reached waypoint %d: %s, %s",
            self._entity_id,
            cursor.route_index,
            destination.latitude,
            destination.longitude,
        )

        if cursor.route_index >= len(self._route) - 1:
            self._finish(AnimatorState.COMPLETED)
            _logger.info("Simulation completed for %s", self._entity_id)

    def _write(self, position: Coordinate, heading: float) -> None:
        self._store.write(
            TrajectorySample(
                entity_id=self._entity_id,
                position=position,
                heading_degrees=heading,
                updated_at=self._clock(),
                source=SampleSource.SIMULATED,
            )
        )

    def _finish(self, state: AnimatorState) -> None:
        self._state = state
        self._generation += 1
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()
        if self._on_finished is not None:
            try:
                self._on_finished(state)
            except Exception:
                _logger.warning("on_finished callback failed", exc_info=True)
