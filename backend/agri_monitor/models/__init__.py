from agri_monitor.models.sensor import Sensor
from agri_monitor.models.sensor_reading import SensorReading
from agri_monitor.models.recommendation import Recommendation
from agri_monitor.models.threshold_setting import ThresholdSetting

__all__ = ["Sensor", "SensorReading", "Recommendation", "ThresholdSetting"]
