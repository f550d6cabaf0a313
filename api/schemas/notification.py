# api/schemas/notification.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from core.constants import AdminNotificationType, UserGroup


class Notification(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    payload: Optional[dict] = None
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SystemNotification(BaseModel):
    title: str = Field(..., min_length=5, max_length=100)
    message: str = Field(..., min_length=10, max_length=500)
    type: AdminNotificationType = AdminNotificationType.ANNOUNCEMENT


class GroupNotification(SystemNotification):
    group: UserGroup


class UserNotification(SystemNotification):
    user_id: str
    type: AdminNotificationType = AdminNotificationType.INFO


class NotificationsSent(BaseModel):
    sent: int
