"""Custom exception hierarchy for fleetmotion."""

from __future__ import annotations


class FleetMotionError(Exception):
    """Base exception for all fleetmotion errors."""


class FleetConfigError(FleetMotionError):
    """Invalid or missing configuration."""


class RouteLookupError(FleetMotionError):
    """Routing or geocoding lookup failed (network, non-200, unusable body).

    The lookup client catches this and reports "no route" / "no match" to
    its caller; it is never fatal to the engine.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class LiveStreamError(FleetMotionError):
    """A live position source could not connect or lost its connection."""
