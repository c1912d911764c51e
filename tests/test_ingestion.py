"""Tests for ingestion sources and push sinks."""
import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
import requests
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from agri_monitor.core.config import Settings
from agri_monitor.crud import sensor_crud, settings_crud
from agri_monitor.schemas import PushNotification, ThresholdBand
from agri_monitor.services import (
    DatabaseSource,
    IngestionError,
    LoggingPushSink,
    RemoteSource,
    WebhookPushClient,
    build_push_sink,
    build_source,
)


def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.content = b"{}"
    response.raise_for_status.return_value = None
    return response


class TestDatabaseSource:
    """Test loading the sensor set from the database."""

    def test_fetch_joins_latest_reading_and_window(self, db, session_factory):
        now = datetime.now(timezone.utc)
        field = sensor_crud.create(db, {"name": "North field", "category": "soil_moisture", "location_lat": 29.4, "location_lng": 79.5})
        tank = sensor_crud.create(db, {"name": "Water Tank A", "category": "water_level"})
        sensor_crud.add_reading(db, field.id, 55.0, "%", now - timedelta(hours=30))
        sensor_crud.add_reading(db, field.id, 22.0, "%", now - timedelta(hours=2))
        sensor_crud.add_reading(db, field.id, 48.0, "%", now - timedelta(minutes=10))

        batch = DatabaseSource(session_factory).fetch()

        sensors = {sensor.id: sensor for sensor in batch.sensors}
        assert sensors[field.id].latest_reading.value == 48.0
        assert sensors[field.id].status == "normal"
        assert sensors[field.id].latitude == 29.4
        assert sensors[tank.id].latest_reading is None
        assert [reading.value for reading in batch.readings] == [22.0, 48.0]
        assert all(reading.timestamp.tzinfo is not None for reading in batch.readings)

    def test_stored_thresholds_override_defaults(self, db, session_factory):
        field = sensor_crud.create(db, {"name": "East field", "category": "soil_moisture"})
        sensor_crud.add_reading(db, field.id, 35.0, "%")
        settings_crud.update_band(db, "soil_moisture", ThresholdBand(low=40.0, high=80.0))

        batch = DatabaseSource(session_factory).fetch()

        assert batch.sensors[0].thresholds == ThresholdBand(low=40.0, high=80.0)
        assert batch.sensors[0].status == "low"

    def test_database_error_raises_ingestion_error(self):
        temp_dir = tempfile.mkdtemp()
        engine = create_engine(f"sqlite:///{os.path.join(temp_dir, 'empty.db')}")
        try:
            source = DatabaseSource(sessionmaker(bind=engine))
            with pytest.raises(IngestionError):
                source.fetch()
        finally:
            engine.dispose()
            shutil.rmtree(temp_dir, ignore_errors=True)


class TestRemoteSource:
    """Test loading the sensor set from another API instance."""

    SENSORS = [
        {
            "id": 1,
            "name": "Field A",
            "category": "soil_moisture",
            "latitude": None,
            "longitude": None,
            "status": "high",
            "latest_reading": {"sensor_id": 1, "value": 12.0, "unit": "%", "timestamp": "2024-01-02T08:00:00Z"},
        }
    ]
    READINGS = [{"sensor_id": 1, "value": 12.0, "unit": "%", "timestamp": "2024-01-02T08:00:00Z"}]

    @patch("agri_monitor.services.ingestion.requests.get")
    def test_fetch(self, mock_get):
        mock_get.side_effect = [json_response(self.SENSORS), json_response(self.READINGS)]

        batch = RemoteSource("http://collector/api/", timeout=3).fetch()

        assert batch.sensors[0].status == "low"
        assert batch.readings[0].value == 12.0
        mock_get.assert_any_call("http://collector/api/sensors", params=None, timeout=3)
        mock_get.assert_any_call("http://collector/api/readings", params={"hours": 24}, timeout=3)

    @patch("agri_monitor.services.ingestion.requests.get")
    def test_remote_thresholds_take_precedence(self, mock_get):
        row = dict(self.SENSORS[0], thresholds={"low": 50.0, "high": 90.0})
        row["latest_reading"] = dict(row["latest_reading"], value=40.0)
        mock_get.side_effect = [json_response([row]), json_response([])]

        sensor = RemoteSource("http://collector/api", timeout=3).fetch().sensors[0]

        assert sensor.thresholds == ThresholdBand(low=50.0, high=90.0)
        assert sensor.status == "low"

    @patch("agri_monitor.services.ingestion.requests.get")
    def test_unreachable(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(IngestionError):
            RemoteSource("http://collector/api", timeout=3).fetch()

    @patch("agri_monitor.services.ingestion.requests.get")
    def test_malformed_payload(self, mock_get):
        mock_get.side_effect = [json_response([{"id": 1}]), json_response([])]

        with pytest.raises(IngestionError):
            RemoteSource("http://collector/api", timeout=3).fetch()

    def test_build_source(self, session_factory):
        assert isinstance(build_source(Settings(ingestion_source="remote"), session_factory), RemoteSource)
        assert isinstance(build_source(Settings(ingestion_source="database"), session_factory), DatabaseSource)


class TestPushSinks:
    """Test push notification sinks."""

    @patch("agri_monitor.services.push.requests.post")
    def test_webhook_posts_notification(self, mock_post):
        mock_post.return_value = json_response({"ok": True})
        notification = PushNotification(title="Critical Alert", body="Field A: 12% - Critical low reading", tag="1")

        result = WebhookPushClient("http://push.local/notify", timeout=2).send(notification)

        assert result == {"ok": True}
        mock_post.assert_called_once_with(
            "http://push.local/notify",
            json={"title": "Critical Alert", "body": "Field A: 12% - Critical low reading", "tag": "1"},
            timeout=2,
        )

    @patch("agri_monitor.services.push.requests.post")
    def test_webhook_error_propagates(self, mock_post):
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("503")
        mock_post.return_value = response

        with pytest.raises(requests.HTTPError):
            WebhookPushClient("http://push.local/notify", timeout=2).send(
                PushNotification(title="t", body="b", tag="1")
            )

    def test_build_push_sink(self):
        assert isinstance(build_push_sink(Settings(push_webhook_url="")), LoggingPushSink)
        assert isinstance(build_push_sink(Settings(push_webhook_url="http://push.local")), WebhookPushClient)
