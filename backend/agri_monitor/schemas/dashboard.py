from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from agri_monitor.schemas.sensor import Sensor, SensorCategory, SensorReading, SensorStatus


class AggregateMetrics(BaseModel):
    avg_soil_moisture: float = 0.0
    avg_temperature: float = 0.0
    tank_level: float = 0.0
    status_counts: dict[str, int] = Field(default_factory=dict)


class TimeSeriesPoint(BaseModel):
    time: str
    moisture: float | None = None
    temperature: float | None = None


class SensorMarker(BaseModel):
    sensor_id: int
    name: str
    category: SensorCategory
    status: SensorStatus
    latitude: float
    longitude: float
    value: float | None = None
    unit: str = ""
    last_reading_at: datetime | None = None


class IngestionBatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    sensors: list[Sensor]
    readings: list[SensorReading]
    fetched_at: datetime


class DashboardSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    sensors: list[Sensor]
    metrics: AggregateMetrics
    series: list[TimeSeriesPoint]
    markers: list[SensorMarker]
    map_center: tuple[float, float]
    fetched_at: datetime
    generated_at: datetime
