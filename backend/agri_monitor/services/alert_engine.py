import itertools
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from agri_monitor.schemas import Alert, PushNotification, Sensor
from agri_monitor.services.push import PushSink

logger = logging.getLogger(__name__)

ALERT_TEXT = {
    "low": ("critical", "Critical Alert", "Critical low reading"),
    "high": ("warning", "Warning Alert", "High reading detected"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _alert_message(sensor: Sensor, text: str) -> str:
    reading = sensor.latest_reading
    value = _format_value(reading.value) if reading else ""
    unit = reading.unit if reading else ""
    return f"{sensor.name}: {value}{unit} - {text}"


class AlertStore:
    """In-memory alert list owned by one dashboard session."""

    def __init__(self) -> None:
        self._alerts: list[Alert] = []
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        return next(self._ids)

    @property
    def alerts(self) -> list[Alert]:
        return list(self._alerts)

    @property
    def unread_count(self) -> int:
        return sum(1 for alert in self._alerts if not alert.acknowledged)

    def recent(self, limit: int = 10) -> list[Alert]:
        return self._alerts[:limit]

    def add(self, alert: Alert) -> Alert:
        self._alerts.insert(0, alert)
        return alert

    def get(self, alert_id: int) -> Alert | None:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    def open_alert_for(self, sensor_id: int) -> Alert | None:
        for alert in self._alerts:
            if alert.sensor_id == sensor_id and not alert.acknowledged:
                return alert
        return None

    def acknowledge(self, alert_id: int) -> Alert | None:
        alert = self.get(alert_id)
        if alert and not alert.acknowledged:
            alert.acknowledged = True
            alert.acknowledged_at = _utcnow()
        return alert

    def supersede(self, alert: Alert, replacement_id: int) -> None:
        alert.acknowledged = True
        alert.acknowledged_at = _utcnow()
        alert.superseded_by = replacement_id

    def clear(self) -> int:
        removed = len(self._alerts)
        self._alerts.clear()
        return removed


class AlertEngine:
    """Turns derived sensor statuses into deduplicated alerts.

    Each sensor is either ``normal`` or ``alerted``. An alert is emitted on the
    way into ``alerted`` only; while the sensor's alert stays unacknowledged,
    repeated out-of-range evaluations are no-ops. Acknowledging the alert or
    seeing the sensor back at ``normal`` re-arms emission. Recovery leaves the
    alert itself untouched until the next crossing supersedes it.
    """

    def __init__(
        self,
        store: AlertStore,
        push_sink: PushSink | None = None,
        push_permission: str = "default",
    ) -> None:
        self.store = store
        self.push_sink = push_sink
        self.push_permission = push_permission
        self._states: dict[int, str] = {}

    def set_push_permission(self, permission: str) -> None:
        if permission not in {"granted", "denied", "default"}:
            raise ValueError(f"unknown push permission: {permission}")
        self.push_permission = permission

    def evaluate(self, sensors: Iterable[Sensor]) -> list[Alert]:
        created: list[Alert] = []
        for sensor in sensors:
            alert = self._evaluate_sensor(sensor)
            if alert is not None:
                created.append(alert)
        return created

    def _evaluate_sensor(self, sensor: Sensor) -> Alert | None:
        status = sensor.status
        if status == "normal":
            self._states[sensor.id] = "normal"
            return None

        existing = self.store.open_alert_for(sensor.id)
        if existing is not None and self._states.get(sensor.id, "alerted") == "alerted":
            return None

        severity, title, text = ALERT_TEXT[status]
        alert = Alert(
            id=self.store.next_id(),
            sensor_id=sensor.id,
            severity=severity,
            title=title,
            message=_alert_message(sensor, text),
            created_at=_utcnow(),
        )
        if existing is not None:
            self.store.supersede(existing, alert.id)
        self.store.add(alert)
        self._states[sensor.id] = "alerted"
        logger.info("Alert %s raised for sensor %s: %s", alert.id, sensor.id, alert.message)

        self._push(alert)
        return alert

    def _push(self, alert: Alert) -> None:
        if self.push_permission != "granted" or self.push_sink is None:
            return
        notification = PushNotification(title=alert.title, body=alert.message, tag=str(alert.sensor_id))
        try:
            self.push_sink.send(notification)
        except Exception as exc:
            logger.warning("Push notification for alert %s dropped: %s", alert.id, exc)
