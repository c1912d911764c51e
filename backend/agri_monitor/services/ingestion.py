"""
ingestion.py - Sources that load the current sensor set and trend window.

A source returns one ``IngestionBatch`` per fetch and raises
``IngestionError`` when the backing store cannot be read.
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import requests
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from agri_monitor.core.config import Settings
from agri_monitor.crud import sensor_crud, settings_crud
from agri_monitor.crud.crud_sensor import as_utc
from agri_monitor.schemas import IngestionBatch, Sensor, SensorReading, ThresholdBand
from agri_monitor.services.thresholds import band_for, merge_bands

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """The ingestion source was unreachable or returned an error."""


class IngestionSource(Protocol):
    def fetch(self) -> IngestionBatch: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def reading_from_row(row: Any) -> SensorReading:
    return SensorReading(
        sensor_id=row.sensor_id,
        value=row.value,
        unit=row.unit or "",
        timestamp=as_utc(row.timestamp),
    )


def sensor_from_row(row: Any, latest: Any, bands: Mapping[str, ThresholdBand]) -> Sensor:
    return Sensor(
        id=row.id,
        name=row.name,
        category=row.category,
        latitude=row.location_lat,
        longitude=row.location_lng,
        latest_reading=reading_from_row(latest) if latest else None,
        thresholds=band_for(row.category, bands),
    )


class DatabaseSource:
    def __init__(self, session_factory: Callable[[], Session], window_hours: int = 24) -> None:
        self.session_factory = session_factory
        self.window_hours = window_hours

    def fetch(self) -> IngestionBatch:
        fetched_at = _utcnow()
        db = self.session_factory()
        try:
            bands = merge_bands(settings_crud.get_overrides(db))
            sensors = [
                sensor_from_row(row, sensor_crud.latest_reading(db, row.id), bands)
                for row in sensor_crud.get_multi(db)
            ]
            since = fetched_at - timedelta(hours=self.window_hours)
            readings = [reading_from_row(row) for row in sensor_crud.get_window_readings(db, since)]
        except SQLAlchemyError as exc:
            logger.error("Failed to load sensors from database: %s", exc)
            raise IngestionError(f"Database unavailable: {exc}") from exc
        finally:
            db.close()

        return IngestionBatch(sensors=sensors, readings=readings, fetched_at=fetched_at)


class RemoteSource:
    """Reads another instance of this API over HTTP."""

    def __init__(
        self,
        base_url: str,
        timeout: int,
        thresholds: Mapping[str, ThresholdBand] | None = None,
        window_hours: int = 24,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.thresholds = merge_bands(thresholds)
        self.window_hours = window_hours

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        response = requests.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _band(self, row: Mapping[str, Any]) -> ThresholdBand:
        if row.get("thresholds") is not None:
            return ThresholdBand.model_validate(row["thresholds"])
        return band_for(row.get("category", "other"), self.thresholds)

    def fetch(self) -> IngestionBatch:
        fetched_at = _utcnow()
        try:
            sensor_rows = self._get("/sensors")
            reading_rows = self._get("/readings", params={"hours": self.window_hours})
        except requests.RequestException as exc:
            raise IngestionError(f"Failed to fetch sensor data: {exc}") from exc
        except ValueError as exc:
            raise IngestionError(f"Malformed response from {self.base_url}: {exc}") from exc

        try:
            sensors = [
                Sensor(
                    id=row["id"],
                    name=row["name"],
                    category=row.get("category", "other"),
                    latitude=row.get("latitude"),
                    longitude=row.get("longitude"),
                    latest_reading=row.get("latest_reading"),
                    thresholds=self._band(row),
                )
                for row in sensor_rows
            ]
            readings = [SensorReading.model_validate(row) for row in reading_rows]
        except (KeyError, TypeError, ValidationError) as exc:
            raise IngestionError(f"Malformed response from {self.base_url}: {exc}") from exc

        return IngestionBatch(sensors=sensors, readings=readings, fetched_at=fetched_at)


def build_source(settings: Settings, session_factory: Callable[[], Session]) -> IngestionSource:
    if settings.ingestion_source == "remote":
        return RemoteSource(
            settings.remote_source_url,
            settings.remote_source_timeout,
            window_hours=settings.trend_window_hours,
        )
    return DatabaseSource(session_factory, window_hours=settings.trend_window_hours)
