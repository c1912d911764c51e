"""
aggregator.py - Dashboard metrics, hourly trend series and map markers.

Every function here is a pure reduction of its inputs so the dashboard
session can re-run it on each ingestion event.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, tzinfo

from agri_monitor.schemas import AggregateMetrics, Sensor, SensorMarker, SensorReading, TimeSeriesPoint

TANK_NAME_KEY = "tank"


def _category_average(sensors: Sequence[Sensor], category: str) -> float:
    values = [
        sensor.latest_reading.value
        for sensor in sensors
        if sensor.category == category and sensor.latest_reading is not None
    ]
    # No reading in the category averages to 0.
    return sum(values) / max(len(values), 1)


def _tank_level(sensors: Sequence[Sensor]) -> float:
    for sensor in sensors:
        if TANK_NAME_KEY in sensor.name.lower() and sensor.latest_reading is not None:
            return sensor.latest_reading.value
    return 0.0


def _status_counts(sensors: Sequence[Sensor]) -> dict[str, int]:
    counts = {"normal": 0, "low": 0, "high": 0}
    for sensor in sensors:
        counts[sensor.status] += 1
    return counts


def compute_metrics(sensors: Sequence[Sensor]) -> AggregateMetrics:
    return AggregateMetrics(
        avg_soil_moisture=_category_average(sensors, "soil_moisture"),
        avg_temperature=_category_average(sensors, "temperature"),
        tank_level=_tank_level(sensors),
        status_counts=_status_counts(sensors),
    )


def readings_in_window(readings: Iterable[SensorReading], now: datetime, hours: int = 24) -> list[SensorReading]:
    start_time = now - timedelta(hours=hours)
    return [reading for reading in readings if reading.timestamp >= start_time]


def _bucket_key(timestamp: datetime, tz: tzinfo | None) -> str:
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(tz)
    return f"{timestamp.hour:02d}:00"


def build_time_series(
    readings: Iterable[SensorReading],
    sensors: Sequence[Sensor],
    tz: tzinfo | None = None,
) -> list[TimeSeriesPoint]:
    """Fold readings into one point per hour-of-day bucket.

    Buckets ignore the calendar day, so 08:15 today and 08:45 yesterday share
    ``"08:00"``. Within a bucket the last reading processed wins. Points are
    returned in the order their buckets were first created.
    """
    categories = {sensor.id: sensor.category for sensor in sensors}
    buckets: dict[str, dict[str, float]] = {}

    for reading in sorted(readings, key=lambda item: item.timestamp):
        entry = buckets.setdefault(_bucket_key(reading.timestamp, tz), {})
        category = categories.get(reading.sensor_id)
        if category == "soil_moisture":
            entry["moisture"] = reading.value
        elif category == "temperature":
            entry["temperature"] = reading.value

    return [TimeSeriesPoint(time=key, **values) for key, values in buckets.items()]


def build_markers(sensors: Sequence[Sensor], fallback: tuple[float, float]) -> list[SensorMarker]:
    markers: list[SensorMarker] = []
    for sensor in sensors:
        if sensor.latitude is not None and sensor.longitude is not None:
            latitude, longitude = sensor.latitude, sensor.longitude
        else:
            latitude, longitude = fallback

        reading = sensor.latest_reading
        markers.append(
            SensorMarker(
                sensor_id=sensor.id,
                name=sensor.name,
                category=sensor.category,
                status=sensor.status,
                latitude=latitude,
                longitude=longitude,
                value=reading.value if reading else None,
                unit=reading.unit if reading else "",
                last_reading_at=reading.timestamp if reading else None,
            )
        )
    return markers


def map_center(markers: Sequence[SensorMarker], fallback: tuple[float, float]) -> tuple[float, float]:
    if not markers:
        return fallback
    return markers[0].latitude, markers[0].longitude
