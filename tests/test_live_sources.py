from __future__ import annotations

import asyncio
import random

import pytest

from fleetmotion._constants import MOCK_BASE_POSITION, MOCK_JITTER_DEGREES
from fleetmotion.config import LiveStreamConfig
from fleetmotion.exceptions import LiveStreamError
from fleetmotion.live import MockPositionSource, MqttPositionSource
from fleetmotion.models.position import PositionEvent


class _Listener:
    def __init__(self) -> None:
        self.events: list[PositionEvent] = []
        self.reconnects = 0

    def on_position(self, event: PositionEvent) -> None:
        self.events.append(event)

    def on_reconnect(self) -> None:
        self.reconnects += 1


def test_mock_events_stay_near_base() -> None:
    source = MockPositionSource(LiveStreamConfig(), ["bus-1"], rng=random.Random(7))
    for _ in range(20):
        event = source.next_event("bus-1")
        assert event.entity_id == "bus-1"
        assert MOCK_BASE_POSITION[0] <= event.position.latitude <= MOCK_BASE_POSITION[0] + MOCK_JITTER_DEGREES
        assert MOCK_BASE_POSITION[1] <= event.position.longitude <= MOCK_BASE_POSITION[1] + MOCK_JITTER_DEGREES


@pytest.mark.asyncio
async def test_mock_source_emits_until_disconnected() -> None:
    source = MockPositionSource(LiveStreamConfig(mock_interval=0.01), ["bus-1", "bus-2"], rng=random.Random(1))
    listener = _Listener()

    await source.connect(listener)
    for _ in range(100):
        if len(listener.events) >= 4:
            break
        await asyncio.sleep(0.01)
    await source.disconnect()
    count = len(listener.events)
    await asyncio.sleep(0.03)

    assert count >= 4
    assert {event.entity_id for event in listener.events} == {"bus-1", "bus-2"}
    assert len(listener.events) == count
    assert not source.is_running


@pytest.mark.asyncio
async def test_mqtt_connect_without_host_raises() -> None:
    source = MqttPositionSource(LiveStreamConfig(host=None))
    with pytest.raises(LiveStreamError):
        await source.connect(_Listener())


@pytest.mark.asyncio
async def test_mqtt_deliveries_after_disconnect_are_dropped() -> None:
    source = MqttPositionSource(LiveStreamConfig(host="broker.invalid"))
    listener = _Listener()
    # Simulate a connected source without opening a socket.
    source._loop = asyncio.get_running_loop()
    source._listener = listener
    event = PositionEvent(entity_id="bus-1", position={"lat": 1.0, "lng": 2.0})

    source._post(lambda target: target.on_position(event))
    await asyncio.sleep(0)
    assert listener.events == [event]

    source._post(lambda target: target.on_reconnect())
    await source.disconnect()
    await asyncio.sleep(0)
    assert listener.reconnects == 0
