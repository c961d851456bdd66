"""Live tracker.

Applies discrete live position events to the trajectory store, smoothing
each entity's heading so markers turn rather than snap.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from fleetmotion.config import MotionConfig
from fleetmotion.geo import bearing
from fleetmotion.heading import HeadingSmoother
from fleetmotion.models.geo import Coordinate
from fleetmotion.models.position import PositionEvent
from fleetmotion.models.trajectory import SampleSource, TrajectorySample
from fleetmotion.state.store import TrajectoryStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def should_accept_position(*, cached_ts: float | None, incoming_ts: float | None) -> bool:
    """Reject events whose payload timestamp is older than the last applied one.

    Events without a timestamp are always accepted (arrival order applies).
    """
    if cached_ts is None or incoming_ts is None:
        return True
    return incoming_ts >= cached_ts


class LiveTracker:
    """Turn live (entity, position) events into trajectory samples.

    Every entity is tracked independently. The first event for an entity
    places it with heading 0; later events turn it toward the bearing from
    its previous position.
    """

    def __init__(
        self,
        store: TrajectoryStore,
        config: MotionConfig,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock
        self._smoother = HeadingSmoother(config.live_heading_weight)
        self._last_payload_ts: dict[str, float] = {}

    @property
    def weight(self) -> float:
        return self._smoother.weight

    def tracked_ids(self) -> list[str]:
        return self._smoother.entity_ids()

    def is_tracking(self, entity_id: str) -> bool:
        return entity_id in self._smoother

    def apply(self, event: PositionEvent) -> TrajectorySample | None:
        return self.on_position_event(event.entity_id, event.position, timestamp=event.timestamp)

    def on_position_event(
        self,
        entity_id: str,
        position: Coordinate,
        *,
        timestamp: float | None = None,
    ) -> TrajectorySample | None:
        """Apply one reported position. Returns the written sample, or
        ``None`` when the event was older than what was already applied."""
        if not should_accept_position(cached_ts=self._last_payload_ts.get(entity_id), incoming_ts=timestamp):
            _logger.debug("Dropping out-of-order position for %s (ts=%s)", entity_id, timestamp)
            return None

        previous = self._store.get(entity_id)
        if previous is None or entity_id not in self._smoother:
            heading = self._smoother.seed(entity_id, 0.0)
            self._store.reset_path(entity_id, position)
            _logger.debug("Tracking new entity %s at %s, %s", entity_id, position.latitude, position.longitude)
        else:
            if previous.position == position:
                heading = self._smoother.current(entity_id) or 0.0
            else:
                heading = self._smoother.observe(entity_id, bearing(previous.position, position))
            self._store.append_path(entity_id, position)

        if timestamp is not None:
            self._last_payload_ts[entity_id] = timestamp

        sample = TrajectorySample(
            entity_id=entity_id,
            position=position,
            heading_degrees=heading,
            updated_at=self._clock(),
            source=SampleSource.LIVE,
        )
        self._store.write(sample)
        return sample

    def reset(self, entity_id: str) -> None:
        """Forget one entity; its next event is treated as the first."""
        self._smoother.reset(entity_id)
        self._last_payload_ts.pop(entity_id, None)
        self._store.remove(entity_id)

    def remove_all(self) -> None:
        """Forget every live-tracked entity (e.g. after a reconnect)."""
        entity_ids = self._smoother.entity_ids()
        self._smoother.clear()
        self._last_payload_ts.clear()
        self._store.remove_many(entity_ids)
        if entity_ids:
            _logger.info("Cleared live tracking state for %d entities", len(entity_ids))
