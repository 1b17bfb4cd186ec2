"""
tests/test_alerts_api.py

HTTP and WebSocket tests for the gateway routers.
The SQL store is replaced by the in-memory store via dependency overrides.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from gateway.dependencies import get_alert_store
from gateway.main import app
from gateway.services.notification import NotificationBroadcaster
from tests.fixtures import (
    ADMIN_ID,
    BASE_TIME,
    DOCTOR_ID,
    IDLE_DOCTOR_ID,
    OTHER_PATIENT_ID,
    PATIENT_ID,
    FakeAlertStore,
    auth_header,
    make_token,
)

ADMIN = auth_header(ADMIN_ID, "admin")
DOCTOR = auth_header(DOCTOR_ID, "doctor")
PATIENT = auth_header(PATIENT_ID, "patient")
OTHER_PATIENT = auth_header(OTHER_PATIENT_ID, "patient")


@pytest.fixture
def store():
    fake = FakeAlertStore()
    app.dependency_overrides[get_alert_store] = lambda: fake
    app.state.broadcaster = NotificationBroadcaster(mode="targeted")
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(store):
    with TestClient(app) as test_client:
        yield test_client


def _create(client: TestClient, user_id: int = PATIENT_ID, headers=DOCTOR) -> dict:
    response = client.post(
        "/alerts",
        json={
            "title": "Check in",
            "message": "Please recheck your glucose",
            "userId": user_id,
            "category": "glucose",
            "severity": "high",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_requests_without_token_are_rejected(client) -> None:
    assert client.get("/alerts").status_code == 401
    assert client.get("/alerts", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_create_alert_returns_camel_case_record(client) -> None:
    body = _create(client)

    assert body["userId"] == PATIENT_ID
    assert body["isRead"] is False
    assert body["status"] == "high"
    assert "createdAt" in body


def test_patient_cannot_create_alert(client) -> None:
    response = client.post(
        "/alerts",
        json={
            "title": "x",
            "message": "y",
            "userId": PATIENT_ID,
            "category": "glucose",
            "severity": "low",
        },
        headers=PATIENT,
    )

    assert response.status_code == 403


def test_create_alert_for_missing_user_is_404(client) -> None:
    response = client.post(
        "/alerts",
        json={
            "title": "x",
            "message": "y",
            "userId": 9999,
            "category": "glucose",
            "severity": "low",
        },
        headers=ADMIN,
    )

    assert response.status_code == 404
    assert response.json() == {"message": "Target user not found"}


def test_create_alert_rejects_unknown_severity(client) -> None:
    response = client.post(
        "/alerts",
        json={
            "title": "x",
            "message": "y",
            "userId": PATIENT_ID,
            "category": "glucose",
            "severity": "urgent",
        },
        headers=ADMIN,
    )

    assert response.status_code == 422


def test_list_alerts_is_role_scoped(client) -> None:
    mine = _create(client, PATIENT_ID)
    theirs = _create(client, OTHER_PATIENT_ID)

    patient_view = client.get("/alerts", headers=PATIENT).json()
    doctor_view = client.get("/alerts", headers=DOCTOR).json()
    idle_view = client.get("/alerts", headers=auth_header(IDLE_DOCTOR_ID, "doctor")).json()

    assert [a["id"] for a in patient_view] == [mine["id"]]
    assert [a["id"] for a in doctor_view] == [theirs["id"], mine["id"]]
    assert idle_view == []


def test_get_single_alert(client) -> None:
    alert = _create(client)

    assert client.get(f"/alerts/{alert['id']}", headers=PATIENT).status_code == 200
    assert client.get(f"/alerts/{alert['id']}", headers=DOCTOR).status_code == 200
    assert client.get(f"/alerts/{alert['id']}", headers=OTHER_PATIENT).status_code == 403
    assert client.get("/alerts/999", headers=ADMIN).status_code == 404


def test_mark_read_twice(client) -> None:
    alert = _create(client)

    first = client.patch(f"/alerts/{alert['id']}/read", headers=PATIENT)
    second = client.patch(f"/alerts/{alert['id']}/read", headers=PATIENT)

    assert first.status_code == 200 and first.json()["isRead"] is True
    assert second.status_code == 200 and second.json()["isRead"] is True


def test_mark_read_by_other_patient_is_forbidden(client) -> None:
    alert = _create(client)

    response = client.patch(f"/alerts/{alert['id']}/read", headers=OTHER_PATIENT)

    assert response.status_code == 403
    assert response.json() == {"message": "Access denied"}


def test_doctor_passes_role_gate_but_not_ownership_check(client) -> None:
    alert = _create(client)

    response = client.put(f"/alerts/{alert['id']}", json={"title": "New"}, headers=DOCTOR)

    assert response.status_code == 403


def test_admin_updates_and_deletes(client, store) -> None:
    alert = _create(client)

    updated = client.put(
        f"/alerts/{alert['id']}",
        json={"title": "Reviewed", "category": "glucose"},
        headers=ADMIN,
    )
    deleted = client.delete(f"/alerts/{alert['id']}", headers=ADMIN)

    assert updated.status_code == 200
    assert updated.json()["title"] == "Reviewed"
    assert deleted.json() == {"message": "Alert deleted successfully"}
    assert store.alerts == {}
    assert client.delete(f"/alerts/{alert['id']}", headers=ADMIN).status_code == 404


def test_update_rejects_immutable_fields(client) -> None:
    alert = _create(client)

    response = client.put(
        f"/alerts/{alert['id']}", json={"severity": "low"}, headers=ADMIN
    )

    assert response.status_code == 422


def test_store_failure_surfaces_as_500(store) -> None:
    store.find_alerts = AsyncMock(side_effect=RuntimeError("db down"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/alerts", headers=ADMIN)

    assert response.status_code == 500


def test_health_metric_ingestion_creates_alerts(client, store) -> None:
    metric = SimpleNamespace(
        id=11,
        user_id=PATIENT_ID,
        type="glucose",
        value="250",
        unit="mg/dL",
        recorded_at=BASE_TIME,
        notes=None,
    )
    with patch(
        "gateway.routers.metrics.persist_metric",
        new_callable=AsyncMock,
        return_value=metric,
    ) as mock_persist:
        response = client.post(
            "/health-metrics",
            json={"type": "glucose", "value": "250", "unit": "mg/dL", "isFasting": False},
            headers=PATIENT,
        )

    assert response.status_code == 201, response.text
    body = response.json()
    mock_persist.assert_awaited_once()
    assert body["id"] == 11
    assert len(body["alerts"]) == 1
    assert body["alerts"][0]["severity"] == "critical"
    assert body["alerts"][0]["userId"] == PATIENT_ID


def test_health_metric_rejects_malformed_blood_pressure(client) -> None:
    response = client.post(
        "/health-metrics",
        json={"type": "blood_pressure", "value": "high"},
        headers=PATIENT,
    )

    assert response.status_code == 422


def test_health_metric_of_other_type_is_stored_without_alerts(client) -> None:
    metric = SimpleNamespace(
        id=12,
        user_id=PATIENT_ID,
        type="weight",
        value="72.5",
        unit="kg",
        recorded_at=BASE_TIME,
        notes=None,
    )
    with patch(
        "gateway.routers.metrics.persist_metric",
        new_callable=AsyncMock,
        return_value=metric,
    ) as mock_persist, patch(
        "gateway.routers.metrics.process_readings", new_callable=AsyncMock
    ) as mock_pipeline:
        response = client.post(
            "/health-metrics",
            json={"type": "weight", "value": "72.5", "unit": "kg"},
            headers=PATIENT,
        )

    assert response.status_code == 201, response.text
    assert response.json()["alerts"] == []
    mock_persist.assert_awaited_once()
    mock_pipeline.assert_not_awaited()
    assert app.state.broadcaster.stats()["total_published"] == 0


@pytest.mark.parametrize("value", ["nan", "inf", "1e400"])
def test_health_metric_rejects_non_finite_glucose(client, value: str) -> None:
    with patch(
        "gateway.routers.metrics.persist_metric", new_callable=AsyncMock
    ) as mock_persist:
        response = client.post(
            "/health-metrics",
            json={"type": "glucose", "value": value},
            headers=PATIENT,
        )

    assert response.status_code == 422
    mock_persist.assert_not_awaited()


def test_health_endpoint_reports_channel_stats(client) -> None:
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["realtime"]["mode"] == "targeted"


def test_websocket_receives_own_alert(client) -> None:
    with client.websocket_connect("/ws/alerts") as ws:
        ws.send_json({"event": "authenticate", "token": make_token(PATIENT_ID, "patient")})
        assert ws.receive_json() == {"event": "authenticated", "userId": PATIENT_ID}

        alert = _create(client, PATIENT_ID)
        message = ws.receive_json()

    assert message["event"] == "new-alert"
    assert message["data"]["id"] == alert["id"]
    assert message["data"]["userId"] == PATIENT_ID
    assert message["data"]["severity"] == "high"


def test_websocket_does_not_receive_other_users_alerts(client) -> None:
    with client.websocket_connect("/ws/alerts") as ws:
        ws.send_json({"event": "authenticate", "token": make_token(OTHER_PATIENT_ID, "patient")})
        ws.receive_json()

        _create(client, PATIENT_ID)
        assert app.state.broadcaster.stats()["total_deliveries"] == 0

        own = _create(client, OTHER_PATIENT_ID)
        message = ws.receive_json()

    assert message["data"]["id"] == own["id"]


def test_websocket_rejects_bad_token(client) -> None:
    with client.websocket_connect("/ws/alerts") as ws:
        ws.send_json({"event": "authenticate", "token": "forged"})
        assert ws.receive_json()["event"] == "error"
        with pytest.raises(WebSocketDisconnect) as excinfo:
            ws.receive_json()

    assert excinfo.value.code == 1008
    assert app.state.broadcaster.stats()["connected_channels"] == 0
