import logging
import threading
from datetime import datetime, timezone, tzinfo
from typing import Any

from agri_monitor.schemas import Alert, DashboardSnapshot, IngestionBatch
from agri_monitor.services import aggregator
from agri_monitor.services.alert_engine import AlertEngine, AlertStore
from agri_monitor.services.events import SENSOR_READINGS, SENSORS, EventBus, Subscription
from agri_monitor.services.ingestion import IngestionError, IngestionSource
from agri_monitor.services.push import PushSink

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to load sensor data"


class DashboardSession:
    """Derived dashboard state for one operator session.

    Each ingestion event refreshes the sensor set and then recomputes metrics,
    trend series, markers and alerts. Readers only ever see a complete
    ``DashboardSnapshot``; a batch fetched earlier than the published one is
    discarded.
    """

    def __init__(
        self,
        source: IngestionSource,
        bus: EventBus | None = None,
        store: AlertStore | None = None,
        push_sink: PushSink | None = None,
        push_permission: str = "default",
        tz: tzinfo | None = None,
        window_hours: int = 24,
        fallback: tuple[float, float] = (29.375055, 79.531300),
    ) -> None:
        self.source = source
        self.bus = bus or EventBus()
        self.store = store or AlertStore()
        self.engine = AlertEngine(self.store, push_sink=push_sink, push_permission=push_permission)
        self.tz = tz
        self.window_hours = window_hours
        self.fallback = fallback
        self.state = "idle"
        self.error: str | None = None
        self._snapshot: DashboardSnapshot | None = None
        self._subscriptions: list[Subscription] = []
        self._lock = threading.RLock()

    @property
    def snapshot(self) -> DashboardSnapshot | None:
        return self._snapshot

    def start(self) -> None:
        if self._subscriptions:
            return
        for topic in (SENSORS, SENSOR_READINGS):
            self._subscriptions.append(self.bus.subscribe(topic, self._on_change))

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self.state = "closed"

    def _on_change(self, _payload: Any) -> None:
        self.refresh()

    def refresh(self) -> DashboardSnapshot | None:
        with self._lock:
            self.state = "loading"
        try:
            batch = self.source.fetch()
        except IngestionError as exc:
            logger.error("Error fetching sensors: %s", exc)
            with self._lock:
                self.state = "error"
                self.error = FETCH_FAILED_MESSAGE
            return None
        return self.apply(batch)

    def apply(self, batch: IngestionBatch) -> DashboardSnapshot:
        # Stale check, alert evaluation and publication form one step.
        with self._lock:
            current = self._snapshot
            if current is not None and batch.fetched_at < current.fetched_at:
                logger.info(
                    "Discarding stale batch fetched at %s (published %s)",
                    batch.fetched_at.isoformat(),
                    current.fetched_at.isoformat(),
                )
                self.state = "ready"
                self.error = None
                return current

            sensors = batch.sensors
            window = aggregator.readings_in_window(batch.readings, batch.fetched_at, self.window_hours)
            markers = aggregator.build_markers(sensors, self.fallback)
            self.engine.evaluate(sensors)

            snapshot = DashboardSnapshot(
                sensors=sensors,
                metrics=aggregator.compute_metrics(sensors),
                series=aggregator.build_time_series(window, sensors, self.tz),
                markers=markers,
                map_center=aggregator.map_center(markers, self.fallback),
                fetched_at=batch.fetched_at,
                generated_at=datetime.now(timezone.utc),
            )
            self._snapshot = snapshot
            self.state = "ready"
            self.error = None
            return snapshot

    def set_push_permission(self, permission: str) -> None:
        with self._lock:
            self.engine.set_push_permission(permission)

    def acknowledge(self, alert_id: int) -> Alert | None:
        with self._lock:
            return self.store.acknowledge(alert_id)

    def clear_alerts(self) -> int:
        with self._lock:
            return self.store.clear()
