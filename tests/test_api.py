"""Tests for the HTTP API."""
from fastapi.testclient import TestClient

from agri_monitor.main import app
from agri_monitor.services import IngestionError
from agri_monitor.services.events import SENSORS


def create_sensor(client, name="Field A", category="soil_moisture", **extra):
    response = client.post("/api/sensors", json={"name": name, "category": category, **extra})
    assert response.status_code == 201
    return response.json()


def post_reading(client, sensor_id, value, unit="%"):
    return client.post(f"/api/sensors/{sensor_id}/readings", json={"value": value, "unit": unit})


class FailingSource:
    def fetch(self):
        raise IngestionError("backend unreachable")


class TestSensors:
    """Test sensor and reading endpoints."""

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_create_and_list_sensors(self, client):
        created = create_sensor(client, name="North field", latitude=29.4, longitude=79.5)

        assert created["status"] == "normal"
        assert created["latest_reading"] is None

        sensors = client.get("/api/sensors").json()
        assert [sensor["name"] for sensor in sensors] == ["North field"]

    def test_reading_updates_latest_and_status(self, client):
        sensor = create_sensor(client)

        response = post_reading(client, sensor["id"], 12.5)

        assert response.status_code == 201
        detail = client.get(f"/api/sensors/{sensor['id']}").json()
        assert detail["latest_reading"]["value"] == 12.5
        assert detail["status"] == "low"

    def test_unknown_sensor(self, client):
        assert client.get("/api/sensors/999").status_code == 404
        assert post_reading(client, 999, 10).status_code == 404

    def test_invalid_category_rejected(self, client):
        response = client.post("/api/sensors", json={"name": "Probe", "category": "humidity"})

        assert response.status_code == 422

    def test_readings_window(self, client):
        sensor = create_sensor(client)
        post_reading(client, sensor["id"], 40)
        post_reading(client, sensor["id"], 42)

        readings = client.get("/api/readings?hours=24").json()

        assert [reading["value"] for reading in readings] == [40, 42]


class TestDashboard:
    """Test the dashboard snapshot endpoints."""

    def test_dashboard_metrics(self, client):
        first = create_sensor(client, name="Field A")
        second = create_sensor(client, name="Field B")
        tank = create_sensor(client, name="Water Tank A", category="water_level")
        post_reading(client, first["id"], 40)
        post_reading(client, second["id"], 60)
        post_reading(client, tank["id"], 72)

        body = client.get("/api/dashboard").json()

        metrics = body["snapshot"]["metrics"]
        assert body["state"] == "ready"
        assert metrics["avg_soil_moisture"] == 50.0
        assert metrics["avg_temperature"] == 0
        assert metrics["tank_level"] == 72
        assert len(body["snapshot"]["markers"]) == 3
        assert len(body["snapshot"]["series"]) >= 1

    def test_fetch_failure_returns_502_until_retry(self, client, dashboard_session):
        source = dashboard_session.source
        dashboard_session.source = FailingSource()

        assert client.get("/api/dashboard").status_code == 502
        response = client.get("/api/dashboard")
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to load sensor data"

        dashboard_session.source = source
        assert client.post("/api/dashboard/refresh").status_code == 200
        assert client.get("/api/dashboard").status_code == 200


class TestAlerts:
    """Test alert endpoints driven by ingested readings."""

    def test_repeated_low_readings_raise_one_alert(self, client):
        sensor = create_sensor(client, name="Field C")
        post_reading(client, sensor["id"], 12)
        post_reading(client, sensor["id"], 11)

        body = client.get("/api/alerts").json()

        assert body["count"] == 1
        assert body["unread_count"] == 1
        alert = body["items"][0]
        assert alert["severity"] == "critical"
        assert alert["message"] == "Field C: 12% - Critical low reading"

    def test_acknowledge_rearms_alerts(self, client):
        sensor = create_sensor(client)
        post_reading(client, sensor["id"], 12)
        alert_id = client.get("/api/alerts").json()["items"][0]["id"]

        response = client.post(f"/api/alerts/{alert_id}/acknowledge")

        assert response.status_code == 200
        assert response.json()["acknowledged"] is True

        post_reading(client, sensor["id"], 10)
        body = client.get("/api/alerts").json()
        assert body["count"] == 2
        assert body["unread_count"] == 1
        assert client.get("/api/alerts?unread_only=true").json()["count"] == 1

    def test_acknowledge_unknown_alert(self, client):
        assert client.post("/api/alerts/42/acknowledge").status_code == 404

    def test_clear_all(self, client):
        sensor = create_sensor(client, name="Hot house", category="temperature")
        post_reading(client, sensor["id"], 40, unit="°C")

        assert client.delete("/api/alerts").json() == {"cleared": 1}
        assert client.get("/api/alerts").json()["count"] == 0

    def test_push_permission(self, client):
        assert client.get("/api/notifications/permission").json() == {"permission": "default"}

        response = client.put("/api/notifications/permission", json={"permission": "granted"})

        assert response.json() == {"permission": "granted"}
        assert client.put("/api/notifications/permission", json={"permission": "maybe"}).status_code == 422


class TestThresholds:
    """Test threshold settings."""

    def test_defaults(self, client):
        bands = client.get("/api/settings/thresholds").json()

        assert bands["soil_moisture"] == {"low": 30.0, "high": 70.0}
        assert bands["other"] == {"low": None, "high": None}

    def test_invalid_band_rejected(self, client):
        response = client.put("/api/settings/thresholds", json={"category": "temperature", "low": 30, "high": 20})

        assert response.status_code == 400

    def test_update_changes_status(self, client):
        sensor = create_sensor(client)
        post_reading(client, sensor["id"], 35)
        assert client.get(f"/api/sensors/{sensor['id']}").json()["status"] == "normal"

        response = client.put("/api/settings/thresholds", json={"category": "soil_moisture", "low": 40, "high": 80})

        assert response.status_code == 200
        assert response.json()["soil_moisture"] == {"low": 40.0, "high": 80.0}
        assert client.get(f"/api/sensors/{sensor['id']}").json()["status"] == "low"
        assert client.get("/api/alerts").json()["count"] == 1


class TestRecommendations:
    """Test recommendation endpoints."""

    def test_create_list_and_apply(self, client):
        sensor = create_sensor(client, name="Field A")
        created = client.post(
            "/api/recommendations",
            json={
                "sensor_id": sensor["id"],
                "recommendation_type": "irrigation",
                "message": "Irrigate the north field within 6 hours",
                "confidence_score": 0.85,
            },
        )
        assert created.status_code == 201
        rec = created.json()
        assert rec["status"] == "pending"
        assert rec["confidence_level"] == "high"
        assert rec["sensor_name"] == "Field A"

        pending = client.get("/api/recommendations").json()
        assert pending["count"] == 1

        applied = client.post(f"/api/recommendations/{rec['id']}/apply").json()
        assert applied["status"] == "applied"
        assert client.get("/api/recommendations").json()["count"] == 0

    def test_dismiss_and_limit(self, client):
        ids = []
        for index in range(7):
            response = client.post(
                "/api/recommendations",
                json={"recommendation_type": "harvest", "message": f"Tip {index}", "confidence_score": 0.5},
            )
            ids.append(response.json()["id"])

        pending = client.get("/api/recommendations").json()
        assert pending["count"] == 5
        assert pending["items"][0]["confidence_level"] == "low"

        dismissed = client.post(f"/api/recommendations/{ids[0]}/dismiss").json()
        assert dismissed["status"] == "dismissed"

    def test_unknown_recommendation(self, client):
        assert client.post("/api/recommendations/77/apply").status_code == 404
        assert client.post(
            "/api/recommendations",
            json={"sensor_id": 77, "recommendation_type": "irrigation", "message": "x", "confidence_score": 0.7},
        ).status_code == 404


def test_lifespan_opens_and_closes_dashboard_session():
    with TestClient(app) as test_client:
        assert test_client.get("/").json()["docs"] == "/docs"
        session = app.state.dashboard_session
        assert session.state == "idle"
        assert session.bus.subscriber_count(SENSORS) == 1

    assert session.state == "closed"
    assert session.bus.subscriber_count(SENSORS) == 0
