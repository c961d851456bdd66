"""Engine configuration for fleetmotion."""

from __future__ import annotations

import dataclasses
import math
import os
from collections.abc import Callable, Mapping
from typing import Any

from fleetmotion._constants import (
    DEFAULT_DEMO_END,
    DEFAULT_DEMO_ENTITY_ID,
    DEFAULT_DEMO_START,
    ROUTING_BASE_URL,
)
from fleetmotion.exceptions import FleetConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_lat_lng(value: str) -> tuple[float, float]:
    """Parse ``"lat,lng"`` into a tuple."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2:
        raise ValueError(f"expected 'lat,lng', got {value!r}")
    return float(parts[0]), float(parts[1])


def _read_env(
    env: Mapping[str, str],
    mapping: Mapping[str, tuple[str, Callable[[str], Any]]],
    overrides: Mapping[str, Any],
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for env_key, (field_name, parse) in mapping.items():
        raw = env.get(env_key)
        if raw is None or field_name in overrides:
            continue
        try:
            kwargs[field_name] = parse(raw)
        except ValueError as exc:
            raise FleetConfigError(f"Invalid value for {env_key}: {raw!r}") from exc
    return kwargs


@dataclasses.dataclass(frozen=True)
class LiveStreamConfig:
    """Live position transport settings.

    These configure :class:`fleetmotion.live.MqttPositionSource` and
    :class:`fleetmotion.live.MockPositionSource`.
    """

    host: str | None = None
    port: int = 8883
    topic: str = "fleet/positions"
    username: str | None = None
    password: str | None = None
    tls: bool = True
    keepalive: int = 120
    client_id: str = ""
    mock_interval: float = 3.0

    def __post_init__(self) -> None:
        if self.keepalive <= 0:
            raise FleetConfigError(f"keepalive must be positive, got {self.keepalive}")
        if self.mock_interval <= 0:
            raise FleetConfigError(f"mock_interval must be positive, got {self.mock_interval}")


@dataclasses.dataclass(frozen=True)
class MotionConfig:
    """Engine configuration.

    Parameters
    ----------
    tick_interval : float
        Seconds between animation ticks.
    segment_duration : float
        Seconds the simulated vehicle spends travelling one route segment.
    animation_heading_weight : float
        Heading smoothing weight for animation ticks, in (0, 1]. Small
        values give a gliding turn.
    live_heading_weight : float
        Heading smoothing weight for live position events, in (0, 1].
        Live updates are sparse, so this is usually larger.
    demo_entity_id : str
        Entity id of the self-simulated vehicle. Live events for this id
        are ignored.
    demo_start, demo_end : tuple of float
        ``(latitude, longitude)`` of the built-in demo trip.
    fit_bounds_padding : int
        Padding (pixels) passed to the renderer when fitting a route.
    routing_base_url : str
        OpenRouteService base URL.
    routing_api_key : str or None
        OpenRouteService API key.
    routing_profile : str
        Directions profile (e.g. ``"driving-car"``).
    routing_radius_m : int
        Snap radius in metres for the start and end points.
    http_timeout : float
        Total timeout in seconds for one lookup request.
    live : LiveStreamConfig
        Live transport settings.
    """

    tick_interval: float = 0.05
    segment_duration: float = 0.2
    animation_heading_weight: float = 0.2
    live_heading_weight: float = 0.6
    demo_entity_id: str = DEFAULT_DEMO_ENTITY_ID
    demo_start: tuple[float, float] = DEFAULT_DEMO_START
    demo_end: tuple[float, float] = DEFAULT_DEMO_END
    fit_bounds_padding: int = 50
    routing_base_url: str = ROUTING_BASE_URL
    routing_api_key: str | None = None
    routing_profile: str = "driving-car"
    routing_radius_m: int = 5000
    http_timeout: float = 10.0
    live: LiveStreamConfig = dataclasses.field(default_factory=LiveStreamConfig)

    def __post_init__(self) -> None:
        if self.tick_interval <= 0:
            raise FleetConfigError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.segment_duration <= 0:
            raise FleetConfigError(f"segment_duration must be positive, got {self.segment_duration}")
        for name in ("animation_heading_weight", "live_heading_weight"):
            weight = getattr(self, name)
            if not 0 < weight <= 1:
                raise FleetConfigError(f"{name} must be in (0, 1], got {weight}")
        if not self.demo_entity_id.strip():
            raise FleetConfigError("demo_entity_id must be non-empty")
        if self.http_timeout <= 0:
            raise FleetConfigError(f"http_timeout must be positive, got {self.http_timeout}")

    @property
    def steps_per_segment(self) -> int:
        """Number of ticks spent on one route segment.

        Rounded up so a segment never finishes before ``segment_duration``.
        """
        return max(1, math.ceil(self.segment_duration / self.tick_interval - 1e-9))

    @classmethod
    def from_env(cls, **overrides: Any) -> MotionConfig:
        """Create configuration from ``FLEETMOTION_*`` environment variables.

        Explicit keyword arguments override environment values. The nested
        live block reads ``FLEETMOTION_LIVE_*`` and may be overridden with a
        dict or a :class:`LiveStreamConfig` passed as ``live=``.
        """
        env = os.environ

        _ENV_LIVE_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "FLEETMOTION_LIVE_HOST": ("host", str),
            "FLEETMOTION_LIVE_PORT": ("port", int),
            "FLEETMOTION_LIVE_TOPIC": ("topic", str),
            "FLEETMOTION_LIVE_USERNAME": ("username", str),
            "FLEETMOTION_LIVE_PASSWORD": ("password", str),
            "FLEETMOTION_LIVE_KEEPALIVE": ("keepalive", int),
            "FLEETMOTION_LIVE_CLIENT_ID": ("client_id", str),
            "FLEETMOTION_LIVE_MOCK_INTERVAL": ("mock_interval", float),
        }
        live_overrides = overrides.pop("live", None)
        if isinstance(live_overrides, LiveStreamConfig):
            live = live_overrides
        else:
            explicit_live: dict[str, Any] = dict(live_overrides or {})
            live_kwargs = _read_env(env, _ENV_LIVE_MAP, explicit_live)
            if "tls" not in explicit_live:
                live_kwargs["tls"] = _env_bool(env.get("FLEETMOTION_LIVE_TLS"), True)
            live_kwargs.update(explicit_live)
            live = LiveStreamConfig(**live_kwargs)

        _ENV_CONFIG_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "FLEETMOTION_TICK_INTERVAL": ("tick_interval", float),
            "FLEETMOTION_SEGMENT_DURATION": ("segment_duration", float),
            "FLEETMOTION_ANIMATION_HEADING_WEIGHT": ("animation_heading_weight", float),
            "FLEETMOTION_LIVE_HEADING_WEIGHT": ("live_heading_weight", float),
            "FLEETMOTION_DEMO_ENTITY_ID": ("demo_entity_id", str),
            "FLEETMOTION_DEMO_START": ("demo_start", _env_lat_lng),
            "FLEETMOTION_DEMO_END": ("demo_end", _env_lat_lng),
            "FLEETMOTION_FIT_BOUNDS_PADDING": ("fit_bounds_padding", int),
            "FLEETMOTION_ROUTING_BASE_URL": ("routing_base_url", str),
            "FLEETMOTION_ROUTING_API_KEY": ("routing_api_key", str),
            "FLEETMOTION_ROUTING_PROFILE": ("routing_profile", str),
            "FLEETMOTION_ROUTING_RADIUS_M": ("routing_radius_m", int),
            "FLEETMOTION_HTTP_TIMEOUT": ("http_timeout", float),
        }
        config_kwargs: dict[str, Any] = {"live": live}
        config_kwargs.update(_read_env(env, _ENV_CONFIG_MAP, overrides))
        config_kwargs.update(overrides)

        return cls(**config_kwargs)
