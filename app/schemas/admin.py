"""
Schémas Pydantic pour l'administration et les statistiques.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import Field

from app.models.admin_action import AdminAction
from app.schemas.common import ClientModel
from app.schemas.demande import DemandeOut
from app.schemas.user import UserOut


class BanRequest(ClientModel):
    """
    Paramètres d'un bannissement.
    Sans type explicite: temporaire si une date d'expiration est fournie, sinon permanent.
    """
    ban_type: Optional[Literal["temporary", "permanent"]] = None
    ban_reason: Optional[str] = Field(None, max_length=500)
    ban_expiry: Optional[datetime] = None


class AdminMessageRequest(ClientModel):
    """Message de l'administration, à un utilisateur ou à tous (userId absent)."""
    user_id: Optional[int] = None
    title: Optional[str] = Field(None, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    data: Optional[Dict[str, Any]] = None


class AdminMessageResult(ClientModel):
    success: bool = True
    sent: int


class SweepResult(ClientModel):
    success: bool = True
    lifted: int


class AdminStats(ClientModel):
    users: int
    vendeurs: int
    acheteurs: int
    banned: int
    demandes: int
    reponses: int
    messages: int


class PublicStats(ClientModel):
    total_users: int
    total_demandes: int
    total_reponses: int
    total_messages: int


class AdminActionOut(ClientModel):
    id: str = Field(..., alias="_id")
    admin_id: str
    action: str
    target_user_id: Optional[str] = None
    target_demande_id: Optional[str] = None
    details: Dict[str, Any] = {}
    date_creation: Optional[datetime] = None

    @classmethod
    def from_model(cls, action: AdminAction) -> "AdminActionOut":
        return cls(
            id=str(action.id),
            admin_id=str(action.admin_id),
            action=action.action,
            target_user_id=str(action.target_user_id) if action.target_user_id else None,
            target_demande_id=str(action.target_demande_id) if action.target_demande_id else None,
            details=action.details or {},
            date_creation=action.created_at,
        )


class UserList(ClientModel):
    users: List[UserOut]


class PostList(ClientModel):
    posts: List[DemandeOut]


class AdminActionList(ClientModel):
    actions: List[AdminActionOut]
