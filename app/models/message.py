"""
Modèle Message - Messages échangés entre deux participants à propos d'une demande.
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, JSON,
    ForeignKey, Index,
)

from app.database import Base


class Message(Base):
    """
    Modèle représentant un message.

    Tous les messages entre les deux mêmes participants au sujet de la même
    demande partagent le même conversation_id (voir derive_conversation_id).

    Attributes:
        id: Identifiant unique
        conversation_id: Clé de conversation stable
        demande_id: Demande concernée
        demande_titre: Titre de la demande au moment de l'envoi
        sender_id: Expéditeur
        receiver_id: Destinataire
        message: Texte (vide si des images sont jointes)
        images: Liste de {url, publicId}
        created_at: Date d'envoi
    """

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    conversation_id = Column(String(100), nullable=False)
    demande_id = Column(Integer, ForeignKey("demandes.id"), nullable=False)
    demande_titre = Column(String(140), nullable=False, default="")

    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    message = Column(Text, nullable=False, default="")
    images = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_message_conversation", "conversation_id", "created_at"),
        Index("idx_message_sender_date", "sender_id", "created_at"),
        Index("idx_message_receiver_date", "receiver_id", "created_at"),
        Index("idx_message_demande", "demande_id"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation='{self.conversation_id}')>"

    def other_participant(self, user_id: int) -> int:
        """Retourne l'interlocuteur de user_id dans ce message."""
        return self.receiver_id if self.sender_id == user_id else self.sender_id
