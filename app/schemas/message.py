"""
Schémas Pydantic pour la messagerie.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.models.message import Message
from app.schemas.common import ClientModel, ImageIn, ImageRef, images_to_client
from app.schemas.user import UserOut


class MessageCreate(ClientModel):
    """
    Schéma pour envoyer un message.
    Le texte peut être vide si au moins une image est jointe.
    """
    receiver_id: int = Field(..., description="ID du destinataire")
    demande_id: int = Field(..., description="ID de la demande concernée")
    demande_titre: Optional[str] = Field(None, max_length=140)
    message: Optional[str] = Field("", max_length=5000)
    images: Optional[List[ImageIn]] = None


class MessageOut(ClientModel):
    """Message tel qu'affiché au client."""
    id: str = Field(..., alias="_id")
    conversation_id: str
    demande_id: str
    demande_titre: str
    sender_id: str
    receiver_id: str
    message: str
    images: List[ImageRef] = []
    date_creation: Optional[datetime] = None

    @classmethod
    def from_model(cls, msg: Message) -> "MessageOut":
        return cls(
            id=str(msg.id),
            conversation_id=msg.conversation_id,
            demande_id=str(msg.demande_id),
            demande_titre=msg.demande_titre or "",
            sender_id=str(msg.sender_id),
            receiver_id=str(msg.receiver_id),
            message=msg.message or "",
            images=images_to_client(msg.images),
            date_creation=msg.created_at,
        )


class ConversationOut(ClientModel):
    """Résumé d'une conversation pour un utilisateur."""
    conversation_id: str
    demande_id: str
    demande_titre: str
    other_user: UserOut
    last_message: MessageOut
    unread_count: int = 0


class MessageEnvelope(ClientModel):
    message: MessageOut


class MessageList(ClientModel):
    messages: List[MessageOut]


class ConversationList(ClientModel):
    conversations: List[ConversationOut]


class ConversationDeleted(ClientModel):
    success: bool = True
    message: str
    deleted_count: int
