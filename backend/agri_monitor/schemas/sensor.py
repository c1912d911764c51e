from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

SensorCategory = Literal["soil_moisture", "temperature", "water_level", "other"]
SensorStatus = Literal["normal", "low", "high"]

CATEGORIES: tuple[str, ...] = ("soil_moisture", "temperature", "water_level", "other")


class ThresholdBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    low: float | None = None
    high: float | None = None

    @model_validator(mode="after")
    def _check_order(self) -> "ThresholdBand":
        if self.low is not None and self.high is not None and self.low >= self.high:
            raise ValueError("low must be lower than high")
        return self

    def classify(self, value: float) -> SensorStatus:
        if self.low is not None and value < self.low:
            return "low"
        if self.high is not None and value > self.high:
            return "high"
        return "normal"


class SensorReading(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    sensor_id: int
    value: float
    unit: str = ""
    timestamp: datetime


class Sensor(BaseModel):
    """A monitored device together with its most recent reading.

    ``status`` is derived from ``latest_reading`` and ``thresholds`` and
    cannot be assigned.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: SensorCategory = "other"
    latitude: float | None = None
    longitude: float | None = None
    latest_reading: SensorReading | None = None
    thresholds: ThresholdBand | None = None

    @computed_field  # type: ignore[misc]
    @property
    def status(self) -> SensorStatus:
        if self.latest_reading is None or self.thresholds is None:
            return "normal"
        return self.thresholds.classify(self.latest_reading.value)


class SensorIn(BaseModel):
    name: str = Field(..., min_length=1)
    category: SensorCategory = "other"
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)


class ReadingIn(BaseModel):
    value: float
    unit: str = ""
    timestamp: datetime | None = None


class ThresholdUpdate(BaseModel):
    category: SensorCategory
    low: float | None = None
    high: float | None = None
