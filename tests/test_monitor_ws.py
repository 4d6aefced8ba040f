from __future__ import annotations

import inspect
import json

import pytest
from fastapi.testclient import TestClient
from starlette.testclient import WebSocketDenialResponse

import config
from dependencies import broadcaster

COOKIE = config.SESSION_COOKIE_NAME


def test_unauthenticated_upgrade_is_denied(client) -> None:
    with pytest.raises(WebSocketDenialResponse) as denied:
        with client.websocket_connect("/admin/ws"):
            pass

    assert denied.value.status_code == 401
    assert denied.value.json() == {"ok": False, "error": "UNAUTHORIZED"}


def test_forged_cookie_upgrade_is_denied(client) -> None:
    with pytest.raises(WebSocketDenialResponse) as denied:
        with client.websocket_connect("/admin/ws", headers={"cookie": f"{COOKIE}=forged"}):
            pass

    assert denied.value.status_code == 401


def test_authenticated_subscriber_gets_snapshot_on_connect(app, login) -> None:
    cookie_value = login(TestClient(app)).cookies[COOKIE]
    client = TestClient(app)

    with client.websocket_connect("/admin/ws", headers={"cookie": f"{COOKIE}={cookie_value}"}) as ws:
        snapshot = json.loads(ws.receive_text())
        assert broadcaster.viewers == 1

    assert snapshot["viewers"] == 1
    assert isinstance(snapshot["ts"], int)
    for key in ("uptimeSec", "totalRequests", "inFlight", "uniqueIPs", "rpm", "mem", "hw", "thresholds"):
        assert key in snapshot
    assert snapshot["thresholds"] == {
        "cpuWarn": 0.7,
        "cpuCrit": 0.9,
        "ramWarn": 0.7,
        "ramCrit": 0.85,
        "rpmWarn": 120,
        "rpmCrit": 240,
    }
    assert set(snapshot["hw"]) == {"totalMem", "usedMem", "freeMem", "cpuCores", "load1", "cpuPressure"}
    assert set(snapshot["mem"]) == {"rss", "heapUsed", "heapTotal", "external"}


def test_subscriber_is_dropped_after_disconnect(app, login) -> None:
    cookie_value = login(TestClient(app)).cookies[COOKIE]
    client = TestClient(app)

    with client.websocket_connect("/admin/ws", headers={"cookie": f"{COOKIE}={cookie_value}"}) as ws:
        ws.receive_text()
        ws.send_text("ignored")

    # The handler runs its cleanup once the client side has closed
    with client.websocket_connect("/admin/ws", headers={"cookie": f"{COOKIE}={cookie_value}"}) as ws:
        snapshot = json.loads(ws.receive_text())

    assert snapshot["viewers"] == 1


def test_server_supports_http_denial_of_upgrades() -> None:
    import uvicorn
    from uvicorn.protocols.websockets import websockets_impl

    version = tuple(int(part) for part in uvicorn.__version__.split(".")[:2])
    assert version >= (0, 30)
    assert "websocket.http.response" in inspect.getsource(websockets_impl)
