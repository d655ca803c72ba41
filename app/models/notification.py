"""
Modèle Notification - Notifications in-app.
Créées comme effet de bord des messages, réponses, demandes et actions d'administration.
"""

import enum
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Enum, JSON,
    ForeignKey, Index,
)

from app.database import Base


class NotificationType(str, enum.Enum):
    """Types de notifications."""
    MESSAGE = "message"                     # Nouveau message reçu
    REPONSE = "reponse"                     # Un vendeur a répondu à une demande
    NOUVELLE_DEMANDE = "nouvelle_demande"   # Nouvelle demande publiée (vendeurs)
    ADMIN = "admin"                         # Message de l'administration
    BAN = "ban"                             # Compte suspendu


class Notification(Base):
    """
    Modèle représentant une notification.

    Le contenu affiché est porté par `data`; les colonnes de référence
    (conversation_id, message_id, demande_id, reponse_id) reprennent les
    identifiants du payload pour permettre le filtrage indexé.

    Attributes:
        id: Identifiant unique
        user_id: Destinataire
        type: Type de notification
        data: Payload (title, message, clés propres au type)
        read: Lue ou non
        created_at: Date de création
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    type = Column(
        Enum('message', 'reponse', 'nouvelle_demande', 'admin', 'ban',
             name='notificationtype', native_enum=False),
        nullable=False,
    )
    data = Column(JSON, default=dict, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    # Références optionnelles pour faciliter le suivi
    conversation_id = Column(String(100), nullable=True)
    message_id = Column(Integer, nullable=True)
    demande_id = Column(Integer, nullable=True)
    reponse_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_notification_user_date", "user_id", "created_at"),
        Index("idx_notification_user_unread", "user_id", "read"),
        Index("idx_notification_conversation", "conversation_id"),
        Index("idx_notification_message", "message_id"),
        Index("idx_notification_demande", "user_id", "type", "demande_id"),
        Index("idx_notification_reponse", "reponse_id"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user={self.user_id}, type={self.type}, read={self.read})>"


# Templates de notifications prédéfinis
NOTIFICATION_TEMPLATES = {
    NotificationType.MESSAGE: {
        "title": "Nouveau message",
        "message": "{sender_nom} vous a envoyé un message",
    },
    NotificationType.REPONSE: {
        "title": "Nouvelle réponse",
        "message": "{vendeur_nom} a répondu à votre demande \"{demande_titre}\"",
    },
    NotificationType.NOUVELLE_DEMANDE: {
        "title": "Nouvelle demande",
        "message": "{categorie}: \"{demande_titre}\"{budget}",
    },
    NotificationType.BAN: {
        "title": "Compte suspendu",
        "message": "Votre compte a été suspendu: {ban_reason}",
    },
    NotificationType.ADMIN: {
        "title": "Message de l'administration",
        "message": "{message}",
    },
}


def render_template(
    notification_type: NotificationType,
    **kwargs,
) -> Dict[str, str]:
    """
    Retourne le titre et le message d'une notification à partir de son template.

    Args:
        notification_type: Type de notification
        **kwargs: Variables pour le template

    Returns:
        Dictionnaire {title, message}
    """
    template = NOTIFICATION_TEMPLATES.get(notification_type, {})
    return {
        "title": template.get("title", "Notification"),
        "message": template.get("message", "").format(**kwargs),
    }


def reference_columns(data: Dict[str, Any]) -> Dict[str, Optional[Any]]:
    """Extrait les colonnes de référence d'un payload de notification."""

    def as_int(value: Any) -> Optional[int]:
        try:
            return int(value) if value not in (None, "") else None
        except (TypeError, ValueError):
            return None

    return {
        "conversation_id": data.get("conversationId") or None,
        "message_id": as_int(data.get("messageId")),
        "demande_id": as_int(data.get("demandeId")),
        "reponse_id": as_int(data.get("reponseId")),
    }
