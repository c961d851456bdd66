"""Route lookup service boundary and the OpenRouteService client."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import aiohttp

from fleetmotion._api import routing as _routing_api
from fleetmotion._transport import JsonTransport, Transport
from fleetmotion.config import MotionConfig
from fleetmotion.exceptions import FleetMotionError, RouteLookupError
from fleetmotion.models.geo import Coordinate, Route

_logger = logging.getLogger(__name__)


class RouteLookupService(Protocol):
    async def fetch_route(self, start: Coordinate, end: Coordinate) -> Route:
        """Route from *start* to *end*; an empty route on failure."""
        ...

    async def geocode(self, text: str) -> Coordinate | None:
        """Best match for *text*; ``None`` on failure or no match."""
        ...


class OpenRouteServiceLookup:
    """Async OpenRouteService client.

    Lookup failures are logged and reported as an empty route or ``None``;
    they never raise to the caller.

    Usage::

        async with OpenRouteServiceLookup(config) as lookup:
            route = await lookup.fetch_route(start, end)
    """

    def __init__(
        self,
        config: MotionConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    async def __aenter__(self) -> OpenRouteServiceLookup:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = JsonTransport(
                self._config.routing_base_url,
                self._http_session,
                timeout=self._config.http_timeout,
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise FleetMotionError("Lookup not initialized. Use 'async with OpenRouteServiceLookup(...) as lookup:'")
        return self._transport

    async def fetch_route(self, start: Coordinate, end: Coordinate) -> Route:
        transport = self._require_transport()
        try:
            return await _routing_api.fetch_directions(self._config, transport, start, end)
        except RouteLookupError as exc:
            _logger.warning("Routing API error: %s", exc)
            return Route.empty()

    async def geocode(self, text: str) -> Coordinate | None:
        transport = self._require_transport()
        try:
            return await _routing_api.geocode_search(self._config, transport, text)
        except RouteLookupError as exc:
            _logger.warning("Geocoding API error for %r: %s", text, exc)
            return None
