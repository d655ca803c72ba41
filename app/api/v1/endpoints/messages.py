"""
Routes de messagerie - Messages et conversations.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.schemas.common import SuccessResponse
from app.schemas.message import (
    MessageCreate,
    MessageOut,
    MessageEnvelope,
    MessageList,
    ConversationList,
    ConversationDeleted,
)
from app.api.deps import get_current_user, ensure_self_or_admin
from app.services.conversation_service import ConversationService


router = APIRouter()


@router.post(
    "/messages",
    response_model=MessageEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Envoyer un message",
)
async def send_message(
    message_data: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """
    Envoie un message à propos d'une demande et notifie le destinataire.

    - **receiverId**: destinataire
    - **demandeId**: demande concernée
    - **message** / **images**: au moins l'un des deux
    """
    message = ConversationService(db).send_message(current_user, message_data)
    return MessageEnvelope(message=MessageOut.from_model(message))


@router.get(
    "/messages/{conversation_id}",
    response_model=MessageList,
    summary="Messages d'une conversation",
)
async def get_messages(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Messages du plus ancien au plus récent; réservé aux participants."""
    messages = ConversationService(db).get_conversation_messages(conversation_id, current_user)
    return MessageList(messages=[MessageOut.from_model(m) for m in messages])


@router.delete(
    "/messages/{message_id}",
    response_model=SuccessResponse,
    summary="Supprimer un message",
)
async def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    ConversationService(db).delete_message(message_id, current_user)
    return SuccessResponse(message="Message supprimé")


@router.get(
    "/conversations/{user_id}",
    response_model=ConversationList,
    summary="Conversations d'un utilisateur",
)
async def list_conversations(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """
    Une entrée par conversation: dernier message, interlocuteur et nombre
    de notifications de message non lues. La plus récente en premier.
    """
    ensure_self_or_admin(current_user, user_id)
    conversations = ConversationService(db).list_conversations(user_id)
    return ConversationList(conversations=conversations)


@router.delete(
    "/conversations/{conversation_id}",
    response_model=ConversationDeleted,
    summary="Supprimer une conversation",
)
async def delete_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Supprime tous les messages de la conversation et leurs notifications."""
    deleted = ConversationService(db).delete_conversation(conversation_id, current_user)
    return ConversationDeleted(
        message="Conversation supprimée",
        deleted_count=deleted,
    )
