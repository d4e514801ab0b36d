from datetime import datetime
from typing import Optional

from noken.notifications.models import NotificationType
from noken.schemas import CamelModel


class NotificationOut(CamelModel):
    id: int
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: datetime


class UnreadCount(CamelModel):
    count: int
