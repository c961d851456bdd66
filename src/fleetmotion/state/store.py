"""In-memory trajectory store.

The animator and the live tracker write here; renderers read from here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from fleetmotion.models.geo import Coordinate
from fleetmotion.models.trajectory import TrajectorySample
from fleetmotion.state.events import ChangeKind, TrajectoryChange

_logger = logging.getLogger(__name__)

TrajectoryListener = Callable[[TrajectoryChange], None]


class TrajectoryStore:
    """Current sample and traveled path per entity id.

    Exactly one sample is kept per entity and overwritten in place. The
    path log is append-only until it is reset by a new route or the entity
    is removed. Listeners are called synchronously after every mutation.
    """

    def __init__(self) -> None:
        self._samples: dict[str, TrajectorySample] = {}
        self._paths: dict[str, list[Coordinate]] = {}
        self._listeners: list[TrajectoryListener] = []

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._samples

    def __len__(self) -> int:
        return len(self._samples)

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------

    def write(self, sample: TrajectorySample) -> None:
        self._samples[sample.entity_id] = sample
        self._notify(TrajectoryChange(kind=ChangeKind.SAMPLE, entity_id=sample.entity_id, sample=sample))

    def get(self, entity_id: str) -> TrajectorySample | None:
        return self._samples.get(entity_id)

    def entity_ids(self) -> list[str]:
        return list(self._samples)

    # ------------------------------------------------------------------
    # Traveled path
    # ------------------------------------------------------------------

    def path(self, entity_id: str) -> tuple[Coordinate, ...]:
        return tuple(self._paths.get(entity_id, ()))

    def reset_path(self, entity_id: str, start: Coordinate | None = None) -> None:
        """Drop the entity's traveled path, optionally starting a new one."""
        path = [start] if start is not None else []
        self._paths[entity_id] = path
        self._notify(TrajectoryChange(kind=ChangeKind.PATH, entity_id=entity_id, path=tuple(path)))

    def append_path(self, entity_id: str, point: Coordinate) -> None:
        path = self._paths.setdefault(entity_id, [])
        path.append(point)
        self._notify(TrajectoryChange(kind=ChangeKind.PATH, entity_id=entity_id, path=tuple(path)))

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, entity_id: str) -> bool:
        """Forget an entity's sample and path. Returns whether it was known."""
        had_sample = self._samples.pop(entity_id, None) is not None
        had_path = self._paths.pop(entity_id, None) is not None
        if not (had_sample or had_path):
            return False
        self._notify(TrajectoryChange(kind=ChangeKind.REMOVED, entity_id=entity_id))
        return True

    def remove_many(self, entity_ids: Iterable[str]) -> list[str]:
        return [entity_id for entity_id in list(entity_ids) if self.remove(entity_id)]

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: TrajectoryListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: TrajectoryChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.warning("Trajectory listener failed for %s", change.entity_id, exc_info=True)
