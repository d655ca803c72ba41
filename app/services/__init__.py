"""
Module des services métier de Local Deals Togo.
"""

from .notification_service import NotificationService
from .conversation_service import (
    ConversationService,
    derive_conversation_id,
    conversation_participants,
)
from .image_service import ImageStorage, ImageStorageError, get_image_storage
from .user_service import lift_expired_ban, sweep_expired_bans, apply_ban
from .admin_service import record_admin_action

__all__ = [
    "NotificationService",
    "ConversationService",
    "derive_conversation_id",
    "conversation_participants",
    "ImageStorage",
    "ImageStorageError",
    "get_image_storage",
    "lift_expired_ban",
    "sweep_expired_bans",
    "apply_ban",
    "record_admin_action",
]
