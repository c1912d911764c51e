import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

SENSORS = "sensors"
SENSOR_READINGS = "sensor_readings"
RECOMMENDATIONS = "recommendations"

Handler = Callable[[Any], Any]


class Subscription:
    def __init__(self, bus: "EventBus", topic: str, handler: Handler) -> None:
        self.bus = bus
        self.topic = topic
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.bus._remove(self)
            self.active = False


class EventBus:
    """Change notifications from the ingestion side to its subscribers."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        subscription = Subscription(self, topic, handler)
        self._subscriptions[topic].append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        handlers = self._subscriptions.get(subscription.topic, [])
        if subscription in handlers:
            handlers.remove(subscription)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscriptions.get(topic, []))

    def publish(self, topic: str, payload: Any = None) -> int:
        delivered = 0
        for subscription in list(self._subscriptions.get(topic, [])):
            try:
                subscription.handler(payload)
                delivered += 1
            except Exception:
                logger.exception("Handler for %s event failed", topic)
        return delivered
