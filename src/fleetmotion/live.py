"""Live position sources.

A source delivers :class:`PositionEvent` objects and reconnect
notifications to a :class:`LiveStreamListener` on the asyncio loop that
called :meth:`connect`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import secrets
from collections.abc import Callable, Sequence
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt

from fleetmotion._constants import MOCK_BASE_POSITION, MOCK_JITTER_DEGREES
from fleetmotion.config import LiveStreamConfig
from fleetmotion.exceptions import LiveStreamError
from fleetmotion.ingestion.live import decode_position_payload
from fleetmotion.models.geo import Coordinate
from fleetmotion.models.position import PositionEvent

_logger = logging.getLogger(__name__)


class LiveStreamListener(Protocol):
    def on_position(self, event: PositionEvent) -> None:
        ...

    def on_reconnect(self) -> None:
        """The transport reconnected; earlier per-entity history may be stale."""
        ...


class LivePositionSource(Protocol):
    async def connect(self, listener: LiveStreamListener) -> None:
        ...

    async def disconnect(self) -> None:
        ...


class MqttPositionSource:
    """Threaded paho-mqtt subscriber that emits position events onto an asyncio loop.

    Messages are UTF-8 JSON objects such as
    ``{"vehicleId": "bus-7", "lat": 51.5, "lng": -0.09}`` or the positional
    form ``["bus-7", 51.5, -0.09]``. paho reconnects on its own; every
    connect after the first is reported as a reconnect.
    """

    def __init__(self, config: LiveStreamConfig, *, logger: logging.Logger | None = None) -> None:
        self._config = config
        self._logger = logger or _logger
        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._listener: LiveStreamListener | None = None
        self._running = False
        self._connect_count = 0
        self._generation = 0

    @property
    def is_running(self) -> bool:
        """Whether the MQTT network loop is active."""
        return self._running

    async def connect(self, listener: LiveStreamListener) -> None:
        """Connect to the broker and start delivering events to *listener*."""
        if not self._config.host:
            raise LiveStreamError("No live stream host configured")
        loop = asyncio.get_running_loop()
        await self.disconnect()
        self._loop = loop
        self._listener = listener
        self._generation += 1
        try:
            await loop.run_in_executor(None, self._start)
        except (OSError, ValueError) as exc:
            self._listener = None
            raise LiveStreamError(f"MQTT connect to {self._config.host}:{self._config.port} failed: {exc}") from exc

    async def disconnect(self) -> None:
        """Stop delivering events and disconnect. Safe to call repeatedly."""
        self._generation += 1
        self._listener = None
        if self._client is None:
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._stop)

    def _start(self) -> None:
        config = self._config
        client_id = config.client_id or f"fleetmotion-{secrets.token_hex(4)}"
        self._logger.debug(
            "MQTT start requested host=%s port=%s topic=%s client_id=%s",
            config.host,
            config.port,
            config.topic,
            client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if config.username:
            client.username_pw_set(config.username, config.password)
        if config.tls:
            client.tls_set()

        self._connect_count = 0

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._connect_count += 1
            self._logger.debug("MQTT connected reason=%s count=%d", reason_code, self._connect_count)
            c.subscribe(config.topic, qos=0)
            if self._connect_count > 1:
                self._logger.info("MQTT reconnected; live history may be stale")
                self._post(lambda listener: listener.on_reconnect())

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            event = decode_position_payload(msg.payload)
            if event is None:
                return
            self._logger.debug("MQTT position topic=%s entity=%s", msg.topic, event.entity_id)
            self._post(lambda listener: listener.on_position(event))

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(config.host or "", config.port, keepalive=config.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def _stop(self) -> None:
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    def _post(self, deliver: Callable[[LiveStreamListener], None]) -> None:
        """Hand a delivery from the paho thread to the asyncio loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        generation = self._generation
        loop.call_soon_threadsafe(self._deliver, generation, deliver)

    def _deliver(self, generation: int, deliver: Callable[[LiveStreamListener], None]) -> None:
        # Deliveries queued before a disconnect are dropped.
        listener = self._listener
        if generation != self._generation or listener is None:
            return
        deliver(listener)


class MockPositionSource:
    """Emit random positions near a base point for a fixed set of entities.

    Useful for demos without a broker. Each interval every entity reports a
    position within ``MOCK_JITTER_DEGREES`` north-east of the base point.
    """

    def __init__(
        self,
        config: LiveStreamConfig,
        entity_ids: Sequence[str],
        *,
        base: tuple[float, float] = MOCK_BASE_POSITION,
        rng: random.Random | None = None,
    ) -> None:
        self._interval = config.mock_interval
        self._entity_ids = list(entity_ids)
        self._base = base
        self._rng = rng or random.Random()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_event(self, entity_id: str) -> PositionEvent:
        lat = self._base[0] + self._rng.random() * MOCK_JITTER_DEGREES
        lng = self._base[1] + self._rng.random() * MOCK_JITTER_DEGREES
        return PositionEvent(entity_id=entity_id, position=Coordinate(latitude=lat, longitude=lng))

    async def connect(self, listener: LiveStreamListener) -> None:
        await self.disconnect()
        self._task = asyncio.create_task(self._run(listener), name="fleetmotion-mock-positions")

    async def disconnect(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self, listener: LiveStreamListener) -> None:
        while True:
            for entity_id in self._entity_ids:
                listener.on_position(self.next_event(entity_id))
            await asyncio.sleep(self._interval)
