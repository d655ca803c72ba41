"""
Service de messagerie.
Dérivation des identifiants de conversation, envoi de messages,
agrégation des conversations d'un utilisateur et suppressions.
"""

from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.core.logging import logger
from app.models.demande import Demande
from app.models.message import Message
from app.models.user import User
from app.schemas.common import normalize_images
from app.schemas.message import ConversationOut, MessageCreate, MessageOut
from app.schemas.user import UserOut
from app.services.notification_service import NotificationService


def derive_conversation_id(demande_id, user_a, user_b) -> str:
    """
    Identifiant stable d'une conversation entre deux participants à propos d'une demande.

    Les identifiants des participants sont comparés sous forme de chaînes,
    l'ordre des arguments n'a donc pas d'importance.

    Args:
        demande_id: ID de la demande
        user_a: ID d'un participant
        user_b: ID de l'autre participant

    Returns:
        "<demande>_<plus petit>_<plus grand>"
    """
    a, b = str(user_a), str(user_b)
    low, high = (a, b) if a < b else (b, a)
    return f"{demande_id}_{low}_{high}"


def conversation_participants(conversation_id: str) -> Optional[Tuple[str, str, str]]:
    """
    Décompose un identifiant de conversation en (demande, participant, participant).
    Retourne None si l'identifiant est mal formé.
    """
    parts = str(conversation_id).split("_")
    if len(parts) != 3 or not all(parts):
        return None
    return parts[0], parts[1], parts[2]


def is_participant(conversation_id: str, user_id: int) -> bool:
    parsed = conversation_participants(conversation_id)
    return parsed is not None and str(user_id) in parsed[1:]


class ConversationService:
    """Opérations de messagerie liées à une session de base de données."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def send_message(self, sender: User, data: MessageCreate) -> Message:
        """
        Enregistre un message puis notifie le destinataire.

        Raises:
            HTTPException: 400 si texte et images sont vides,
                404 si la demande ou le destinataire n'existe pas
        """
        text = (data.message or "").strip()
        images = normalize_images(data.images, settings.MAX_IMAGES)
        if not text and not images:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Message ou image requis",
            )

        demande = self.db.query(Demande).filter(
            Demande.id == data.demande_id,
            Demande.status != "deleted",
        ).first()
        if not demande:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Demande non trouvée",
            )

        receiver = self.db.query(User).filter(User.id == data.receiver_id).first()
        if not receiver:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Destinataire non trouvé",
            )

        message = Message(
            conversation_id=derive_conversation_id(demande.id, sender.id, receiver.id),
            demande_id=demande.id,
            demande_titre=(data.demande_titre or demande.titre).strip()[:140],
            sender_id=sender.id,
            receiver_id=receiver.id,
            message=text,
            images=images,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)

        logger.info(f"Message {message.id} envoyé dans {message.conversation_id}")

        self.notifications.notify_new_message(message, sender, demande)
        return message

    def list_conversations(self, user_id: int) -> List[ConversationOut]:
        """
        Résumés des conversations d'un utilisateur, la plus récente en premier.

        Seuls les CONVERSATION_SCAN_LIMIT messages les plus récents sont parcourus:
        une conversation dont le dernier message est plus ancien n'apparaît pas.
        """
        recent = self.db.query(Message).filter(
            or_(Message.sender_id == user_id, Message.receiver_id == user_id)
        ).order_by(
            Message.created_at.desc(), Message.id.desc()
        ).limit(settings.CONVERSATION_SCAN_LIMIT).all()

        # Le premier message rencontré est le plus récent de sa conversation
        latest = {}
        for msg in recent:
            if msg.conversation_id not in latest:
                latest[msg.conversation_id] = msg

        if not latest:
            return []

        other_ids = {msg.other_participant(user_id) for msg in latest.values()}
        users = {
            u.id: u for u in self.db.query(User).filter(User.id.in_(other_ids)).all()
        }
        unread = self.notifications.unread_by_conversation(user_id, list(latest))

        conversations = []
        for conversation_id, msg in latest.items():
            other_id = msg.other_participant(user_id)
            other = users.get(other_id)
            conversations.append(ConversationOut(
                conversation_id=conversation_id,
                demande_id=str(msg.demande_id),
                demande_titre=msg.demande_titre or "",
                other_user=UserOut.public(other) if other else UserOut.placeholder(other_id),
                last_message=MessageOut.from_model(msg),
                unread_count=unread.get(conversation_id, 0),
            ))
        return conversations

    def get_conversation_messages(self, conversation_id: str, user: User) -> List[Message]:
        """
        Messages d'une conversation, du plus ancien au plus récent.

        Raises:
            HTTPException: 404 si l'appelant n'y participe pas ou si elle est vide
        """
        if not is_participant(conversation_id, user.id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversation non trouvée",
            )

        messages = self.db.query(Message).filter(
            Message.conversation_id == conversation_id
        ).order_by(
            Message.created_at.asc(), Message.id.asc()
        ).limit(settings.CONVERSATION_MESSAGES_LIMIT).all()

        if not messages:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversation non trouvée",
            )
        return messages

    def delete_message(self, message_id: int, user: User) -> None:
        """Supprime un message (expéditeur ou admin) et ses notifications."""
        message = self.db.query(Message).filter(Message.id == message_id).first()
        if not message:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Message non trouvé",
            )
        if message.sender_id != user.id and not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Vous ne pouvez supprimer que vos propres messages",
            )

        self.notifications.delete_for_message(message.id)
        self.db.delete(message)
        self.db.commit()
        logger.info(f"Message {message_id} supprimé par {user.id}")

    def delete_conversation(self, conversation_id: str, user: User) -> int:
        """
        Supprime tous les messages d'une conversation et leurs notifications.

        Returns:
            Nombre de messages supprimés
        """
        if not user.is_admin and not is_participant(conversation_id, user.id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversation non trouvée",
            )

        deleted = self.db.query(Message).filter(
            Message.conversation_id == conversation_id
        ).delete(synchronize_session=False)
        if not deleted:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversation non trouvée",
            )

        removed = self.notifications.delete_for_conversation(conversation_id)
        self.db.commit()
        logger.info(
            f"Conversation {conversation_id} supprimée par {user.id}: "
            f"{deleted} message(s), {removed} notification(s)"
        )
        return deleted
