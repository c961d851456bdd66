"""Change notifications emitted by the trajectory store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from fleetmotion.models.geo import Coordinate
from fleetmotion.models.trajectory import TrajectorySample


class ChangeKind(StrEnum):
    SAMPLE = "sample"
    PATH = "path"
    REMOVED = "removed"


@dataclass(frozen=True)
class TrajectoryChange:
    """One store mutation, as seen by listeners.

    ``sample`` is set for ``SAMPLE`` changes, ``path`` for ``PATH`` changes.
    """

    kind: ChangeKind
    entity_id: str
    sample: TrajectorySample | None = None
    path: tuple[Coordinate, ...] = ()
