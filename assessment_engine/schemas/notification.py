# assessment_engine/schemas/notification.py
from datetime import datetime, time
from typing import Any, List

from pydantic import BaseModel


class NotificationPublic(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    body: str
    data: dict[str, Any] | None = None
    is_read: bool
    channel: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class NotificationPage(BaseModel):
    data: List[NotificationPublic]
    total: int


class PreferencesUpdate(BaseModel):
    """Sparse update: only fields the caller sets are applied."""
    session_reminders: bool | None = None
    homework_alerts: bool | None = None
    payment_alerts: bool | None = None
    marketing: bool | None = None
    sms_enabled: bool | None = None
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None


class PreferencesPublic(BaseModel):
    user_id: int
    session_reminders: bool = True
    homework_alerts: bool = True
    payment_alerts: bool = True
    marketing: bool = True
    sms_enabled: bool = True
    quiet_hours_start: time | None = None
    quiet_hours_end: time | None = None

    model_config = {"from_attributes": True}
