from agri_monitor.schemas.alert import (
    Alert,
    AlertListResponse,
    AlertSeverity,
    PushNotification,
    PushPermission,
    PushPermissionUpdate,
)
from agri_monitor.schemas.dashboard import (
    AggregateMetrics,
    DashboardSnapshot,
    IngestionBatch,
    SensorMarker,
    TimeSeriesPoint,
)
from agri_monitor.schemas.recommendation import (
    RecommendationIn,
    RecommendationListResponse,
    RecommendationOut,
    RecommendationStatus,
)
from agri_monitor.schemas.sensor import (
    CATEGORIES,
    ReadingIn,
    Sensor,
    SensorCategory,
    SensorIn,
    SensorReading,
    SensorStatus,
    ThresholdBand,
    ThresholdUpdate,
)

__all__ = [
    "CATEGORIES",
    "AggregateMetrics",
    "Alert",
    "AlertListResponse",
    "AlertSeverity",
    "DashboardSnapshot",
    "IngestionBatch",
    "PushNotification",
    "PushPermission",
    "PushPermissionUpdate",
    "ReadingIn",
    "RecommendationIn",
    "RecommendationListResponse",
    "RecommendationOut",
    "RecommendationStatus",
    "Sensor",
    "SensorCategory",
    "SensorIn",
    "SensorMarker",
    "SensorReading",
    "SensorStatus",
    "ThresholdBand",
    "ThresholdUpdate",
    "TimeSeriesPoint",
]
