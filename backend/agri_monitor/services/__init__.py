from agri_monitor.services.thresholds import DEFAULT_THRESHOLDS, band_for, merge_bands
from agri_monitor.services.alert_engine import AlertEngine, AlertStore
from agri_monitor.services.events import EventBus
from agri_monitor.services.ingestion import DatabaseSource, IngestionError, RemoteSource, build_source
from agri_monitor.services.push import LoggingPushSink, WebhookPushClient, build_push_sink
from agri_monitor.services.session import DashboardSession

__all__ = [
    "DEFAULT_THRESHOLDS",
    "AlertEngine",
    "AlertStore",
    "DashboardSession",
    "DatabaseSource",
    "EventBus",
    "IngestionError",
    "LoggingPushSink",
    "RemoteSource",
    "WebhookPushClient",
    "band_for",
    "build_push_sink",
    "build_source",
    "merge_bands",
]
