"""
Schémas Pydantic pour les notifications.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import Field

from app.models.notification import Notification
from app.schemas.common import ClientModel


class NotificationOut(ClientModel):
    """Notification in-app; le contenu affiché est dans `data`."""
    id: str = Field(..., alias="_id")
    user_id: str
    type: str
    data: Dict[str, Any] = {}
    read: bool = False
    date_creation: Optional[datetime] = None

    @classmethod
    def from_model(cls, notification: Notification) -> "NotificationOut":
        return cls(
            id=str(notification.id),
            user_id=str(notification.user_id),
            type=notification.type,
            data=notification.data or {},
            read=bool(notification.read),
            date_creation=notification.created_at,
        )


class NotificationList(ClientModel):
    notifications: List[NotificationOut]


class NotificationEnvelope(ClientModel):
    notification: NotificationOut


class NotificationCount(ClientModel):
    count: int
