"""Heading smoothing.

:func:`smooth` blends a displayed heading toward a target along the short
way round the compass. :class:`HeadingSmoother` keeps one displayed heading
per entity and applies :func:`smooth` on every observation.
"""

from __future__ import annotations

from dataclasses import dataclass

from fleetmotion.geo import normalize_heading


def _check_weight(weight: float) -> None:
    if not 0.0 < weight <= 1.0:
        raise ValueError(f"weight must be in (0, 1], got {weight}")


def smooth(previous: float, target: float, weight: float) -> float:
    """Blend *previous* toward *target* and return a heading in ``[0, 360)``.

    When the two headings are more than 180 degrees apart, 360 is added to
    the smaller one so the average is taken across the 0/360 seam (350 and
    10 average to 0, not 180). ``weight`` is the share of *target* in the
    result: ``1`` snaps, small values turn slowly.
    """
    _check_weight(weight)
    previous = normalize_heading(previous)
    target = normalize_heading(target)
    if previous == target:
        return target

    if abs(target - previous) > 180.0:
        if target < previous:
            target += 360.0
        else:
            previous += 360.0
    return normalize_heading(previous * (1.0 - weight) + target * weight)


@dataclass(slots=True)
class HeadingState:
    """Displayed heading of one entity."""

    entity_id: str
    heading: float = 0.0


class HeadingSmoother:
    """Per-entity heading state with a fixed smoothing weight."""

    def __init__(self, weight: float) -> None:
        _check_weight(weight)
        self._weight = weight
        self._states: dict[str, HeadingState] = {}

    @property
    def weight(self) -> float:
        return self._weight

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._states

    def seed(self, entity_id: str, heading: float) -> float:
        """Set the displayed heading without smoothing (first observation)."""
        value = normalize_heading(heading)
        self._states[entity_id] = HeadingState(entity_id=entity_id, heading=value)
        return value

    def observe(self, entity_id: str, target: float) -> float:
        """Turn the entity toward *target*; unseen entities are seeded at it."""
        state = self._states.get(entity_id)
        if state is None:
            return self.seed(entity_id, target)
        state.heading = smooth(state.heading, target, self._weight)
        return state.heading

    def current(self, entity_id: str) -> float | None:
        state = self._states.get(entity_id)
        return state.heading if state is not None else None

    def reset(self, entity_id: str) -> None:
        self._states.pop(entity_id, None)

    def clear(self) -> None:
        self._states.clear()

    def entity_ids(self) -> list[str]:
        return list(self._states)
