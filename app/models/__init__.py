"""
Module des modèles SQLAlchemy pour Local Deals Togo.
Définit toutes les entités de la base de données.
"""

from .user import User, UserRole, BanType
from .demande import (
    Demande,
    DemandeStatus,
    DemandeBadge,
    CATEGORY_ID_TO_LABEL,
    CATEGORY_LABEL_TO_ID,
    normalize_categorie,
)
from .reponse import Reponse
from .message import Message
from .notification import Notification, NotificationType, NOTIFICATION_TEMPLATES
from .admin_action import AdminAction

__all__ = [
    # User
    "User",
    "UserRole",
    "BanType",
    # Demande
    "Demande",
    "DemandeStatus",
    "DemandeBadge",
    "CATEGORY_ID_TO_LABEL",
    "CATEGORY_LABEL_TO_ID",
    "normalize_categorie",
    # Reponse
    "Reponse",
    # Message
    "Message",
    # Notification
    "Notification",
    "NotificationType",
    "NOTIFICATION_TEMPLATES",
    # Administration
    "AdminAction",
]
