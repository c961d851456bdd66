from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from fleetmotion.animator import AnimatorState, RouteAnimator
from fleetmotion.config import MotionConfig
from fleetmotion.geo import bearing
from fleetmotion.heading import smooth
from fleetmotion.models.geo import Coordinate, Route
from fleetmotion.models.trajectory import TrajectorySample
from fleetmotion.state.events import ChangeKind, TrajectoryChange
from fleetmotion.state.store import TrajectoryStore


class _ManualHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class _ManualScheduler:
    """Scheduler double: ticks only when the test says so."""

    def __init__(self) -> None:
        self.handles: list[_ManualHandle] = []
        self.intervals: list[float] = []

    def start(self, interval: float, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(callback)
        self.handles.append(handle)
        self.intervals.append(interval)
        return handle

    def tick(self, count: int = 1) -> None:
        for _ in range(count):
            for handle in list(self.handles):
                if not handle.cancelled:
                    handle.callback()

    def fire_all(self) -> None:
        """Fire every handle ever started, cancelled or not (stale callbacks)."""
        for handle in list(self.handles):
            handle.callback()


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def _make(
    *,
    tick_interval: float = 1.0,
    segment_duration: float = 1.0,
    weight: float = 0.2,
) -> tuple[RouteAnimator, TrajectoryStore, _ManualScheduler, MotionConfig]:
    config = MotionConfig(
        tick_interval=tick_interval,
        segment_duration=segment_duration,
        animation_heading_weight=weight,
    )
    store = TrajectoryStore()
    scheduler = _ManualScheduler()
    animator = RouteAnimator(store, scheduler, config, clock=_dt)
    return animator, store, scheduler, config


def _samples(store: TrajectoryStore) -> list[TrajectorySample]:
    written: list[TrajectorySample] = []

    def _listener(change: TrajectoryChange) -> None:
        if change.kind == ChangeKind.SAMPLE and change.sample is not None:
            written.append(change.sample)

    store.subscribe(_listener)
    return written


SCENARIO_ROUTE = Route.from_points([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)])


def test_three_point_scenario_one_segment_per_tick() -> None:
    animator, store, scheduler, config = _make(weight=0.2)
    entity_id = config.demo_entity_id

    assert animator.start(SCENARIO_ROUTE) == AnimatorState.RUNNING
    scheduler.tick(2)

    assert animator.state == AnimatorState.COMPLETED
    assert store.path(entity_id) == SCENARIO_ROUTE.waypoints

    first_heading = bearing(SCENARIO_ROUTE[0], SCENARIO_ROUTE[1])
    expected = smooth(first_heading, bearing(SCENARIO_ROUTE[1], SCENARIO_ROUTE[2]), 0.2)
    sample = store.get(entity_id)
    assert sample is not None
    assert sample.position == SCENARIO_ROUTE[2]
    assert sample.heading_degrees == pytest.approx(expected)


def test_start_writes_initial_sample_and_path() -> None:
    animator, store, _scheduler, config = _make()

    animator.start(SCENARIO_ROUTE)

    sample = store.get(config.demo_entity_id)
    assert sample is not None
    assert sample.position == SCENARIO_ROUTE[0]
    assert sample.heading_degrees == pytest.approx(90.0)
    assert store.path(config.demo_entity_id) == (SCENARIO_ROUTE[0],)
    cursor = animator.cursor
    assert (cursor.route_index, cursor.segment_progress) == (0, 0.0)


def test_two_point_route_completes_after_total_duration_monotonically() -> None:
    animator, store, scheduler, _config = _make(tick_interval=0.1, segment_duration=1.0)
    route = Route.from_points([(0.0, 0.0), (0.5, 0.5)])

    animator.start(route)
    written = _samples(store)
    scheduler.tick(9)
    assert animator.state == AnimatorState.RUNNING

    scheduler.tick(1)
    assert animator.state == AnimatorState.COMPLETED
    assert len(written) == 10

    latitudes = [sample.position.latitude for sample in written]
    assert latitudes == sorted(latitudes)
    assert all(0.0 < lat <= 0.5 for lat in latitudes)
    assert written[-1].position == route[1]
    assert scheduler.handles[0].cancelled


def test_no_writes_after_completion() -> None:
    animator, store, scheduler, _config = _make()
    written = _samples(store)

    animator.start(Route.from_points([(0.0, 0.0), (0.0, 1.0)]))
    scheduler.tick(1)
    assert animator.state == AnimatorState.COMPLETED
    count = len(written)

    scheduler.fire_all()
    scheduler.fire_all()

    assert len(written) == count
    assert animator.state == AnimatorState.COMPLETED


@pytest.mark.parametrize("points", [[], [(1.0, 1.0)]])
def test_short_routes_complete_immediately(points: list[tuple[float, float]]) -> None:
    animator, store, scheduler, config = _make()

    assert animator.start(Route.from_points(points)) == AnimatorState.COMPLETED
    assert store.get(config.demo_entity_id) is None
    assert scheduler.handles == []


def test_cancel_keeps_last_sample() -> None:
    animator, store, scheduler, config = _make(tick_interval=0.25, segment_duration=1.0)
    animator.start(Route.from_points([(0.0, 0.0), (0.0, 1.0)]))
    scheduler.tick(2)
    before = store.get(config.demo_entity_id)

    assert animator.cancel() is True
    scheduler.fire_all()

    assert animator.state == AnimatorState.CANCELLED
    assert store.get(config.demo_entity_id) == before
    assert animator.cancel() is False


def test_cancel_is_noop_when_idle() -> None:
    animator, _store, _scheduler, _config = _make()
    assert animator.cancel() is False
    assert animator.state == AnimatorState.IDLE


def test_new_route_replaces_running_route() -> None:
    animator, store, scheduler, config = _make(tick_interval=0.25, segment_duration=1.0)
    written = _samples(store)
    old_route = Route.from_points([(0.0, 0.0), (0.0, 1.0)])
    new_route = Route.from_points([(10.0, 10.0), (11.0, 10.0)])

    animator.start(old_route)
    scheduler.tick(1)
    animator.start(new_route)
    written.clear()

    # Stale callbacks of the first run must be ignored.
    scheduler.handles[0].callback()
    scheduler.tick(4)

    assert scheduler.handles[0].cancelled
    assert all(sample.position.latitude >= 10.0 for sample in written)
    assert animator.state == AnimatorState.COMPLETED
    assert store.path(config.demo_entity_id) == new_route.waypoints


def test_on_finished_callback() -> None:
    config = MotionConfig(tick_interval=1.0, segment_duration=1.0)
    scheduler = _ManualScheduler()
    finished: list[AnimatorState] = []
    animator = RouteAnimator(TrajectoryStore(), scheduler, config, on_finished=finished.append)

    animator.start(Route.from_points([(0.0, 0.0), (0.0, 1.0)]))
    scheduler.tick(1)

    assert finished == [AnimatorState.COMPLETED]


def test_zero_length_segment_keeps_heading() -> None:
    animator, store, scheduler, config = _make()
    route = Route.from_points([(0.0, 0.0), (0.0, 1.0), (0.0, 1.0), (0.0, 2.0)])

    animator.start(route)
    scheduler.tick(2)

    sample = store.get(config.demo_entity_id)
    assert sample is not None
    assert sample.heading_degrees == pytest.approx(90.0)


def test_custom_entity_id() -> None:
    animator, store, scheduler, _config = _make()
    animator.start(Route.from_points([(0.0, 0.0), (1.0, 0.0)]), entity_id="truck-9")
    scheduler.tick(1)
    assert animator.entity_id == "truck-9"
    assert store.get("truck-9") is not None
    assert Coordinate.of(1.0, 0.0) in store.path("truck-9")


class _FailingScheduler:
    def start(self, interval: float, callback: Callable[[], None]) -> _ManualHandle:
        raise RuntimeError("no running event loop")


def test_scheduler_failure_does_not_leave_animator_running() -> None:
    config = MotionConfig(tick_interval=1.0, segment_duration=1.0)
    finished: list[AnimatorState] = []
    animator = RouteAnimator(TrajectoryStore(), _FailingScheduler(), config, on_finished=finished.append)

    with pytest.raises(RuntimeError):
        animator.start(SCENARIO_ROUTE)

    assert animator.state == AnimatorState.CANCELLED
    assert not animator.is_running
    assert finished == [AnimatorState.CANCELLED]
    assert animator.cancel() is False


def test_failing_tick_ends_animation() -> None:
    calls: list[int] = []

    def _clock() -> datetime:
        calls.append(1)
        if len(calls) > 1:
            raise RuntimeError("clock unavailable")
        return _dt()

    config = MotionConfig(tick_interval=1.0, segment_duration=1.0)
    scheduler = _ManualScheduler()
    animator = RouteAnimator(TrajectoryStore(), scheduler, config, clock=_clock)
    animator.start(SCENARIO_ROUTE)

    with pytest.raises(RuntimeError):
        scheduler.tick(1)

    assert animator.state == AnimatorState.CANCELLED
    assert scheduler.handles[0].cancelled
