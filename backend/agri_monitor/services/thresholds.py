from collections.abc import Mapping

from agri_monitor.schemas.sensor import CATEGORIES, ThresholdBand

# Sensor value thresholds per category
DEFAULT_THRESHOLDS: dict[str, ThresholdBand] = {
    "soil_moisture": ThresholdBand(low=30.0, high=70.0),
    "temperature": ThresholdBand(low=10.0, high=35.0),
    "water_level": ThresholdBand(low=20.0, high=95.0),
    "other": ThresholdBand(),
}


def merge_bands(overrides: Mapping[str, ThresholdBand] | None = None) -> dict[str, ThresholdBand]:
    bands = dict(DEFAULT_THRESHOLDS)
    for category, band in (overrides or {}).items():
        if category in CATEGORIES:
            bands[category] = band
    return bands


def band_for(category: str, bands: Mapping[str, ThresholdBand] | None = None) -> ThresholdBand:
    return (bands or DEFAULT_THRESHOLDS).get(category, ThresholdBand())
