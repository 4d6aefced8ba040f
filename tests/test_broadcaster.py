from __future__ import annotations

import asyncio
import json

from starlette.websockets import WebSocketState

from services.broadcaster import LiveBroadcaster
from services.metrics_service import MetricsCollector


class _FakeSocket:
    def __init__(self, fail: bool = False) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.sent: list[str] = []

    async def send_text(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed mid-send")
        self.sent.append(message)


def _broadcaster(**kwargs) -> LiveBroadcaster:
    return LiveBroadcaster(MetricsCollector(trace_heap=False), interval=0.01, **kwargs)


def test_connect_sends_immediate_snapshot() -> None:
    broadcaster = _broadcaster()
    socket = _FakeSocket()

    asyncio.run(broadcaster.connect(socket))

    assert broadcaster.viewers == 1
    assert len(socket.sent) == 1
    assert json.loads(socket.sent[0])["viewers"] == 1


def test_tick_fans_out_one_message_to_open_sockets() -> None:
    broadcaster = _broadcaster()
    first, second, closed = _FakeSocket(), _FakeSocket(), _FakeSocket()

    async def scenario() -> int:
        for socket in (first, second, closed):
            await broadcaster.connect(socket)
        closed.client_state = WebSocketState.DISCONNECTED
        return await broadcaster.tick()

    delivered = asyncio.run(scenario())

    assert delivered == 2
    assert len(first.sent) == 2
    assert first.sent[1] == second.sent[1]
    assert len(closed.sent) == 1
    assert broadcaster.viewers == 2


def test_failed_send_drops_subscriber() -> None:
    broadcaster = _broadcaster()
    healthy, broken = _FakeSocket(), _FakeSocket()

    async def scenario() -> int:
        await broadcaster.connect(healthy)
        await broadcaster.connect(broken)
        broken.fail = True
        return await broadcaster.tick()

    assert asyncio.run(scenario()) == 1
    assert broadcaster.viewers == 1


def test_tick_without_subscribers_only_prunes() -> None:
    seen = []
    broadcaster = _broadcaster(observers=[seen.append])

    assert asyncio.run(broadcaster.tick()) == 0
    assert seen == []


def test_observers_receive_snapshot_and_failures_are_contained() -> None:
    seen = []

    def broken_observer(snapshot) -> None:
        raise ValueError("bad observer")

    broadcaster = _broadcaster(observers=[broken_observer, seen.append])
    socket = _FakeSocket()

    async def scenario() -> int:
        await broadcaster.connect(socket)
        return await broadcaster.tick()

    assert asyncio.run(scenario()) == 1
    assert len(seen) == 1
    assert "thresholds" in seen[0]


def test_disconnect_is_idempotent() -> None:
    broadcaster = _broadcaster()
    socket = _FakeSocket()
    asyncio.run(broadcaster.connect(socket))

    broadcaster.disconnect(socket)
    broadcaster.disconnect(socket)

    assert broadcaster.viewers == 0


def test_start_and_stop_periodic_loop() -> None:
    broadcaster = _broadcaster()
    socket = _FakeSocket()

    async def scenario() -> None:
        await broadcaster.connect(socket)
        broadcaster.start()
        await asyncio.sleep(0.05)
        await broadcaster.stop()

    asyncio.run(scenario())

    assert len(socket.sent) >= 2
    assert broadcaster._task is None
