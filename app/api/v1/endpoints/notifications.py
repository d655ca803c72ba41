"""
Routes pour la gestion des notifications.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.logging import logger
from app.models.notification import Notification
from app.models.user import User
from app.schemas.common import SuccessResponse
from app.schemas.notification import (
    NotificationOut,
    NotificationList,
    NotificationEnvelope,
    NotificationCount,
)
from app.api.deps import get_current_user, ensure_self_or_admin
from app.services.notification_service import NotificationService


router = APIRouter()


def get_owned_notification(db: Session, notification_id: int, user: User) -> Notification:
    """
    Raises:
        HTTPException: 404 si la notification n'existe pas,
            403 si elle appartient à un autre utilisateur (hors admin)
    """
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification non trouvée",
        )
    ensure_self_or_admin(user, notification.user_id)
    return notification


@router.get(
    "/{user_id}",
    response_model=NotificationList,
    summary="Notifications d'un utilisateur",
)
async def list_notifications(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Toutes les notifications, les plus récentes en premier."""
    ensure_self_or_admin(current_user, user_id)
    notifications = NotificationService(db).list_for_user(user_id)
    return NotificationList(notifications=[NotificationOut.from_model(n) for n in notifications])


@router.get(
    "/{user_id}/unread",
    response_model=NotificationList,
    summary="Notifications non lues",
)
async def list_unread_notifications(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    ensure_self_or_admin(current_user, user_id)
    notifications = NotificationService(db).list_for_user(user_id, unread_only=True)
    return NotificationList(notifications=[NotificationOut.from_model(n) for n in notifications])


@router.get(
    "/{user_id}/count",
    response_model=NotificationCount,
    summary="Nombre de notifications non lues",
)
async def count_unread_notifications(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    ensure_self_or_admin(current_user, user_id)
    return NotificationCount(count=NotificationService(db).count_unread(user_id))


@router.put(
    "/{notification_id}/read",
    response_model=NotificationEnvelope,
    summary="Marquer une notification comme lue",
)
async def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    notification = get_owned_notification(db, notification_id, current_user)
    notification = NotificationService(db).mark_read(notification)
    return NotificationEnvelope(notification=NotificationOut.from_model(notification))


@router.put(
    "/{user_id}/read-all",
    response_model=SuccessResponse,
    summary="Marquer toutes les notifications comme lues",
)
async def mark_all_notifications_read(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    ensure_self_or_admin(current_user, user_id)
    updated = NotificationService(db).mark_all_read(user_id)
    logger.info(f"{updated} notification(s) marquée(s) comme lue(s) pour {user_id}")
    return SuccessResponse(message=f"{updated} notification(s) marquée(s) comme lue(s)")


@router.delete(
    "/{notification_id}",
    response_model=SuccessResponse,
    summary="Supprimer une notification",
)
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    notification = get_owned_notification(db, notification_id, current_user)
    db.delete(notification)
    db.commit()
    return SuccessResponse(message="Notification supprimée")
