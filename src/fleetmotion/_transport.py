"""HTTP JSON transport for the routing/geocoding service."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from fleetmotion._constants import USER_AGENT
from fleetmotion._redact import redact_params
from fleetmotion.exceptions import RouteLookupError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`JsonTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> dict[str, Any]:
        ...


def _extract_error_message(text: str) -> str:
    """Pull the service's error message out of an error body, if any."""
    try:
        body = json.loads(text)
    except json.JSONDecodeError:
        return text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error
        if isinstance(body.get("message"), str):
            return body["message"]
    return text[:200]


class JsonTransport:
    """GET requests returning JSON objects, with lookup-specific errors."""

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def get_json(self, endpoint: str, params: Mapping[str, str]) -> dict[str, Any]:
        """GET ``base_url + endpoint`` and return the decoded JSON object."""
        url = f"{self._base_url}{endpoint}"
        headers = {
            "accept": "application/json, application/geo+json",
            "user-agent": USER_AGENT,
        }

        _logger.debug("GET %s params=%s", url, redact_params(params))

        try:
            async with self._http.get(url, params=dict(params), headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise RouteLookupError(
                        f"HTTP {resp.status} from {endpoint}: {_extract_error_message(text)}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except RouteLookupError:
            raise
        except TimeoutError as exc:
            raise RouteLookupError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc
        except aiohttp.ClientError as exc:
            raise RouteLookupError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        try:
            body: Any = json.loads(text)
        except json.JSONDecodeError as exc:
            raise RouteLookupError(f"Invalid JSON from {endpoint}: {text[:200]}", endpoint=endpoint) from exc

        if not isinstance(body, dict):
            raise RouteLookupError(f"Expected a JSON object from {endpoint}", endpoint=endpoint)
        return body
