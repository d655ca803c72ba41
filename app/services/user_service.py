"""
Service utilisateurs: cycle de vie des bannissements.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.logging import logger
from app.models.user import User


def lift_expired_ban(db: Session, user: User, now: Optional[datetime] = None) -> bool:
    """
    Lève la suspension d'un utilisateur si elle est temporaire et expirée.

    Args:
        db: Session de base de données
        user: Utilisateur à vérifier
        now: Instant de référence (défaut: maintenant)

    Returns:
        True si la suspension a été levée
    """
    if not user.has_expired_ban(now):
        return False

    user.clear_ban()
    db.commit()
    db.refresh(user)
    logger.info(f"Suspension temporaire expirée levée pour l'utilisateur {user.id}")
    return True


def sweep_expired_bans(db: Session, now: Optional[datetime] = None) -> int:
    """Lève toutes les suspensions temporaires expirées; retourne leur nombre."""
    now = now or datetime.utcnow()
    lifted = db.query(User).filter(
        User.is_banned == True,
        User.ban_type == "temporary",
        User.ban_expiry != None,
        User.ban_expiry <= now,
    ).update(
        {
            User.is_banned: False,
            User.ban_type: None,
            User.ban_reason: None,
            User.ban_expiry: None,
        },
        synchronize_session=False,
    )
    db.commit()
    if lifted:
        logger.info(f"{lifted} suspension(s) temporaire(s) expirée(s) levée(s)")
    return lifted


def apply_ban(
    user: User,
    ban_type: Optional[str] = None,
    ban_reason: Optional[str] = None,
    ban_expiry: Optional[datetime] = None,
) -> User:
    """
    Applique une suspension (sans commit).

    Sans type explicite, la suspension est temporaire si une expiration est
    fournie, permanente sinon. Une suspension temporaire sans expiration dure
    DEFAULT_TEMP_BAN_DAYS jours.
    """
    if ban_type is None:
        ban_type = "temporary" if ban_expiry else "permanent"

    if ban_type == "temporary":
        expiry = ban_expiry or datetime.utcnow() + timedelta(days=settings.DEFAULT_TEMP_BAN_DAYS)
        if expiry.tzinfo is not None:
            expiry = expiry.replace(tzinfo=None) - (expiry.utcoffset() or timedelta(0))
    else:
        expiry = None

    user.is_banned = True
    user.ban_type = ban_type
    user.ban_reason = (ban_reason or "").strip() or "Violation des règles"
    user.ban_expiry = expiry
    return user
