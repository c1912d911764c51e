from datetime import datetime
from typing import Literal

from pydantic import BaseModel

AlertSeverity = Literal["warning", "critical"]
PushPermission = Literal["granted", "denied", "default"]


class Alert(BaseModel):
    id: int
    sensor_id: int
    severity: AlertSeverity
    title: str
    message: str
    created_at: datetime
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    superseded_by: int | None = None


class AlertListResponse(BaseModel):
    items: list[Alert]
    count: int
    unread_count: int


class PushNotification(BaseModel):
    title: str
    body: str
    tag: str


class PushPermissionUpdate(BaseModel):
    permission: PushPermission
