from __future__ import annotations

import re

from sqlalchemy.exc import OperationalError

from services.lifecycle_service import FlatLifecycleService


def _create_and_approve(client, flat_id: str = "B12") -> int:
    created = client.post("/admin/api/requests", json={"flat_id": flat_id, "name": "Jane"})
    assert created.status_code == 200
    request_id = created.json()["id"]
    approved = client.post(f"/admin/api/requests/{request_id}/approve")
    assert approved.status_code == 200
    return request_id


def test_api_requires_session(client) -> None:
    for method, path in (
        ("GET", "/admin/api/requests"),
        ("POST", "/admin/api/requests/1/approve"),
        ("GET", "/admin/api/flats"),
        ("POST", "/admin/api/flats/B12/setup-code"),
        ("GET", "/admin/api/metrics"),
        ("GET", "/admin/api/live"),
    ):
        response = client.request(method, path)
        assert response.status_code == 401, path
        assert response.json() == {"ok": False, "error": "UNAUTHORIZED"}


def test_pages_redirect_to_login_without_session(client) -> None:
    response = client.get("/admin", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/login"

    root = client.get("/", follow_redirects=False)
    assert root.status_code == 303
    assert root.headers["location"] == "/admin/login"

    assert client.get("/admin/login").status_code == 200
    assert client.get("/favicon.ico").status_code == 204


def test_security_header_on_every_response(client) -> None:
    response = client.get("/admin/login")
    assert "default-src 'self'" in response.headers["content-security-policy"]


def test_create_request_normalizes_and_lists(admin_client) -> None:
    created = admin_client.post(
        "/admin/api/requests",
        json={"flat_id": "  b12 ", "name": "  Jane ", "note": "lobby"},
    )
    assert created.status_code == 200
    body = created.json()
    assert body["ok"] is True
    assert isinstance(body["id"], int)

    listing = admin_client.get("/admin/api/requests")
    assert listing.status_code == 200
    rows = listing.json()["rows"]
    assert len(rows) == 1
    assert rows[0]["flat_id"] == "B12"
    assert rows[0]["name"] == "Jane"
    assert rows[0]["note"] == "lobby"
    assert rows[0]["status"] == "PENDING"


def test_create_request_requires_flat_id_and_name(admin_client) -> None:
    for payload in ({"flat_id": "B12"}, {"name": "Jane"}, {"flat_id": "  ", "name": "Jane"}):
        response = admin_client.post("/admin/api/requests", json=payload)
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "FLAT_ID_AND_NAME_REQUIRED"}


def test_list_requests_status_filter(admin_client) -> None:
    request_id = _create_and_approve(admin_client)

    assert admin_client.get("/admin/api/requests").json()["rows"] == []
    approved = admin_client.get("/admin/api/requests", params={"status": "approved"}).json()["rows"]
    assert [row["id"] for row in approved] == [request_id]

    bad = admin_client.get("/admin/api/requests", params={"status": "LOST"})
    assert bad.status_code == 400
    assert bad.json() == {"ok": False, "error": "BAD_STATUS"}


def test_approve_and_reject_errors(admin_client) -> None:
    missing = admin_client.post("/admin/api/requests/999/approve")
    assert missing.status_code == 404
    assert missing.json() == {"ok": False, "error": "REQUEST_NOT_FOUND"}

    missing = admin_client.post("/admin/api/requests/999/reject")
    assert missing.status_code == 404
    assert missing.json()["error"] == "REQUEST_NOT_FOUND"

    not_a_number = admin_client.post("/admin/api/requests/abc/approve")
    assert not_a_number.status_code == 400
    assert not_a_number.json() == {"ok": False, "error": "VALIDATION_ERROR"}

    request_id = _create_and_approve(admin_client)
    conflict = admin_client.post(f"/admin/api/requests/{request_id}/reject")
    assert conflict.status_code == 409
    assert conflict.json() == {"ok": False, "error": "REQUEST_NOT_PENDING"}


def test_reject_request(admin_client) -> None:
    created = admin_client.post("/admin/api/requests", json={"flat_id": "C3", "name": "Ann"})
    request_id = created.json()["id"]

    response = admin_client.post(f"/admin/api/requests/{request_id}/reject")
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    approve = admin_client.post(f"/admin/api/requests/{request_id}/approve")
    assert approve.status_code == 409
    assert admin_client.get("/admin/api/flats").json()["rows"] == []


def test_approve_returns_flat_and_lists_it(admin_client) -> None:
    created = admin_client.post("/admin/api/requests", json={"flat_id": "a101", "name": "Jane"})
    approved = admin_client.post(f"/admin/api/requests/{created.json()['id']}/approve")
    assert approved.json() == {"ok": True, "flat_id": "A101"}

    rows = admin_client.get("/admin/api/flats", params={"q": "a1"}).json()["rows"]
    assert len(rows) == 1
    row = rows[0]
    assert row["flat_id"] == "A101"
    assert row["status"] == "ACTIVE"
    assert row["strike_count"] == 0
    assert row["ban_until"] is None
    assert row["requires_admin_revoke"] is False
    assert "pin_hash" not in row
    assert "password_hash" not in row


def test_setup_code_endpoint(admin_client) -> None:
    _create_and_approve(admin_client, "B12")

    response = admin_client.post("/admin/api/flats/b12/setup-code", json={"ttlMinutes": 15})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["flat_id"] == "B12"
    assert re.match(r"^[A-HJ-NP-Z]{4}-[2-9]{4}$", body["code"])
    assert isinstance(body["expires_at"], int)

    no_body = admin_client.post("/admin/api/flats/B12/setup-code")
    assert no_body.status_code == 200
    assert no_body.json()["code"] != body["code"]


def test_setup_code_errors(admin_client) -> None:
    missing = admin_client.post("/admin/api/flats/NOPE/setup-code", json={})
    assert missing.status_code == 404
    assert missing.json() == {"ok": False, "error": "FLAT_NOT_FOUND"}

    _create_and_approve(admin_client, "B12")
    for ttl in (0, -5, 10081, "soon"):
        response = admin_client.post("/admin/api/flats/B12/setup-code", json={"ttlMinutes": ttl})
        assert response.status_code == 400, ttl
        assert response.json()["error"] == "VALIDATION_ERROR"


def test_revoke_ban_and_disable(admin_client) -> None:
    _create_and_approve(admin_client, "B12")

    assert admin_client.post("/admin/api/flats/B12/revoke-ban").json() == {"ok": True}

    disabled = admin_client.post("/admin/api/flats/B12/disable")
    assert disabled.status_code == 200
    assert admin_client.get("/admin/api/flats").json()["rows"][0]["status"] == "DISABLED"

    enabled = admin_client.post("/admin/api/flats/B12/disable", json={"disabled": False})
    assert enabled.status_code == 200
    assert admin_client.get("/admin/api/flats").json()["rows"][0]["status"] == "ACTIVE"

    for path in ("/admin/api/flats/NOPE/revoke-ban", "/admin/api/flats/NOPE/disable"):
        response = admin_client.post(path)
        assert response.status_code == 404
        assert response.json()["error"] == "FLAT_NOT_FOUND"


def test_unknown_route_and_method(admin_client) -> None:
    missing = admin_client.get("/admin/api/nothing-here")
    assert missing.status_code == 404
    assert missing.json() == {"ok": False, "error": "NOT_FOUND"}

    wrong_method = admin_client.delete("/admin/api/flats")
    assert wrong_method.status_code == 405
    assert wrong_method.json() == {"ok": False, "error": "METHOD_NOT_ALLOWED"}


def test_store_failure_is_internal_error(admin_client, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    monkeypatch.setattr(FlatLifecycleService, "list_flats", staticmethod(broken))

    response = admin_client.get("/admin/api/flats")
    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "INTERNAL"}


def test_metrics_endpoint(admin_client) -> None:
    response = admin_client.get("/admin/api/metrics")
    assert response.status_code == 200
    body = response.json()
    for key in ("uptimeSec", "totalRequests", "inFlight", "uniqueIPs", "rpm", "mem"):
        assert key in body
    assert body["totalRequests"] >= 2
    assert body["inFlight"] >= 1
    assert body["rpm"] >= 1
    assert set(body["mem"]) == {"rss", "heapUsed", "heapTotal", "external"}
