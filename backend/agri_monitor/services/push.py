import logging
from typing import Any, Protocol

import requests

from agri_monitor.core.config import Settings
from agri_monitor.schemas import PushNotification

logger = logging.getLogger(__name__)


class PushSink(Protocol):
    def send(self, notification: PushNotification) -> Any: ...


class WebhookPushClient:
    def __init__(self, url: str, timeout: int) -> None:
        self.url = url
        self.timeout = timeout

    def send(self, notification: PushNotification) -> dict[str, Any]:
        response = requests.post(self.url, json=notification.model_dump(), timeout=self.timeout)
        response.raise_for_status()
        if response.content:
            return response.json()
        return {}


class LoggingPushSink:
    def send(self, notification: PushNotification) -> None:
        logger.info("Push [%s] %s: %s", notification.tag, notification.title, notification.body)


def build_push_sink(settings: Settings) -> PushSink:
    if settings.push_webhook_url:
        return WebhookPushClient(settings.push_webhook_url, settings.push_timeout)
    return LoggingPushSink()
