"""
Routes d'administration - Modération des utilisateurs et des demandes.
Toutes les routes sont réservées aux administrateurs.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.config import settings
from app.core.logging import logger
from app.models.admin_action import AdminAction
from app.models.demande import Demande
from app.models.message import Message
from app.models.reponse import Reponse
from app.models.user import User
from app.schemas.common import SuccessResponse
from app.schemas.demande import DemandeOut
from app.schemas.user import UserOut, UserEnvelope
from app.schemas.admin import (
    BanRequest,
    AdminMessageRequest,
    AdminMessageResult,
    SweepResult,
    AdminStats,
    AdminActionOut,
    UserList,
    PostList,
    AdminActionList,
)
from app.api.deps import require_admin
from app.services.admin_service import record_admin_action
from app.services.notification_service import NotificationService
from app.services.user_service import apply_ban, sweep_expired_bans


router = APIRouter()


def get_target_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Utilisateur non trouvé",
        )
    return user


def count(db: Session, column, *criteria) -> int:
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


@router.get(
    "/stats",
    response_model=AdminStats,
    summary="Statistiques de la plateforme",
)
async def get_admin_stats(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    return AdminStats(
        users=count(db, User.id),
        vendeurs=count(db, User.id, User.role == "vendeur"),
        acheteurs=count(db, User.id, User.role == "acheteur"),
        banned=count(db, User.id, User.is_banned == True),
        demandes=count(db, Demande.id, Demande.status != "deleted"),
        reponses=count(db, Reponse.id),
        messages=count(db, Message.id),
    )


@router.get(
    "/users",
    response_model=UserList,
    summary="Liste des utilisateurs",
)
async def list_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    users = db.query(User).order_by(
        User.created_at.desc(), User.id.desc()
    ).limit(settings.ADMIN_LIST_LIMIT).all()
    return UserList(users=[UserOut.from_model(u) for u in users])


@router.post(
    "/ban/{user_id}",
    response_model=UserEnvelope,
    summary="Suspendre un utilisateur",
)
async def ban_user(
    user_id: int,
    ban_data: Optional[BanRequest] = None,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    """
    Suspend un compte et notifie l'utilisateur.

    - **banType**: `temporary` (7 jours par défaut) ou `permanent`
    - **banReason**: motif (défaut: "Violation des règles")
    - **banExpiry**: fin de la suspension temporaire
    """
    if user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vous ne pouvez pas vous suspendre vous-même",
        )

    user = get_target_user(db, user_id)
    ban_data = ban_data or BanRequest()

    apply_ban(user, ban_data.ban_type, ban_data.ban_reason, ban_data.ban_expiry)
    db.commit()
    db.refresh(user)

    logger.warning(f"Utilisateur {user.id} suspendu ({user.ban_type}) par {admin.id}")

    NotificationService(db).notify_ban(user)
    record_admin_action(
        db, admin.id, "ban",
        target_user_id=user.id,
        details={
            "banType": user.ban_type,
            "banReason": user.ban_reason,
            "banExpiry": user.ban_expiry.isoformat() if user.ban_expiry else None,
        },
    )
    return UserEnvelope(user=UserOut.from_model(user))


@router.post(
    "/unban/{user_id}",
    response_model=UserEnvelope,
    summary="Réactiver un utilisateur",
)
async def unban_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    user = get_target_user(db, user_id)

    user.clear_ban()
    db.commit()
    db.refresh(user)

    logger.info(f"Utilisateur {user.id} réactivé par {admin.id}")

    NotificationService(db).notify_unban(user)
    record_admin_action(db, admin.id, "unban", target_user_id=user.id)
    return UserEnvelope(user=UserOut.from_model(user))


@router.post(
    "/bans/sweep",
    response_model=SweepResult,
    summary="Lever les suspensions expirées",
)
async def sweep_bans(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    """Lève en une fois toutes les suspensions temporaires arrivées à échéance."""
    lifted = sweep_expired_bans(db)
    record_admin_action(db, admin.id, "sweep_bans", details={"lifted": lifted})
    return SweepResult(lifted=lifted)


@router.post(
    "/message",
    response_model=AdminMessageResult,
    status_code=status.HTTP_201_CREATED,
    summary="Envoyer un message de l'administration",
)
async def send_admin_message(
    message_data: AdminMessageRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    """Envoie une notification à un utilisateur, ou à tous si `userId` est absent."""
    if message_data.user_id is not None:
        get_target_user(db, message_data.user_id)

    sent = NotificationService(db).send_admin_message(
        message=message_data.message,
        title=message_data.title,
        data=message_data.data,
        user_id=message_data.user_id,
    )
    record_admin_action(
        db, admin.id,
        "message" if message_data.user_id is not None else "broadcast",
        target_user_id=message_data.user_id,
        details={"title": message_data.title, "sent": sent},
    )
    return AdminMessageResult(sent=sent)


@router.get(
    "/posts",
    response_model=PostList,
    summary="Demandes publiées",
)
async def list_posts(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    demandes = db.query(Demande).options(joinedload(Demande.acheteur)).filter(
        Demande.status != "deleted"
    ).order_by(
        Demande.created_at.desc(), Demande.id.desc()
    ).limit(settings.ADMIN_LIST_LIMIT).all()
    return PostList(posts=[DemandeOut.from_model(d) for d in demandes])


@router.delete(
    "/posts/{demande_id}",
    response_model=SuccessResponse,
    summary="Supprimer une demande",
)
async def delete_post(
    demande_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    demande = db.query(Demande).filter(
        Demande.id == demande_id,
        Demande.status != "deleted",
    ).first()
    if not demande:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Demande non trouvée",
        )

    demande.status = "deleted"
    db.commit()

    record_admin_action(
        db, admin.id, "delete_post",
        target_user_id=demande.acheteur_id,
        target_demande_id=demande.id,
        details={"titre": demande.titre},
    )
    return SuccessResponse(message="Demande supprimée")


@router.get(
    "/actions",
    response_model=AdminActionList,
    summary="Journal de modération",
)
async def list_admin_actions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Any:
    actions = db.query(AdminAction).order_by(
        AdminAction.created_at.desc(), AdminAction.id.desc()
    ).limit(settings.ADMIN_LIST_LIMIT).all()
    return AdminActionList(actions=[AdminActionOut.from_model(a) for a in actions])
