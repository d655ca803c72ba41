"""
Dépendances d'authentification et de contrôle d'accès.
"""

from typing import Optional, Sequence

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.security import token_user_id
from app.core.logging import logger
from app.models.user import User
from app.services.user_service import lift_expired_ban


# auto_error=False: l'absence de token donne un 401 formaté par l'application
security = HTTPBearer(auto_error=False)


def ban_exception(user: User) -> HTTPException:
    """Erreur 403 décrivant la suspension en cours."""
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "message": "Compte suspendu",
            "banType": user.ban_type,
            "banReason": user.ban_reason,
            "banExpiry": user.ban_expiry.isoformat() if user.ban_expiry else None,
        },
    )


def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: Session,
) -> Optional[User]:
    if not credentials:
        return None
    user_id = token_user_id(credentials.credentials)
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id).first()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Utilisateur authentifié par le token Bearer.

    Une suspension temporaire expirée est levée avant le contrôle.

    Raises:
        HTTPException: 401 sans token valide ou si le compte n'existe plus,
            403 si le compte est suspendu
    """
    user = _resolve_user(credentials, db)
    if user is None:
        logger.warning("Requête authentifiée refusée: token absent ou invalide")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token d'authentification invalide ou expiré",
            headers={"WWW-Authenticate": "Bearer"},
        )

    lift_expired_ban(db, user)
    if user.ban_active():
        logger.warning(f"Accès refusé à l'utilisateur suspendu {user.id}")
        raise ban_exception(user)

    return user


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Utilisateur authentifié s'il y en a un; les routes publiques restent ouvertes."""
    user = _resolve_user(credentials, db)
    if user is None or user.ban_active():
        return None
    return user


class RoleChecker:
    """
    Dépendance réservant une route à certains rôles.

    Usage:
        @router.post("/demandes/{demande_id}/reponses")
        async def respond(vendeur: User = Depends(require_vendeur)): ...
    """

    def __init__(self, roles: Sequence[str]):
        self.roles = tuple(roles)

    async def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in self.roles:
            logger.warning(
                f"Rôle {current_user.role} refusé pour l'utilisateur {current_user.id} "
                f"(attendu: {', '.join(self.roles)})"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Action non autorisée pour ce type de compte",
            )
        return current_user


def require_roles(roles: Sequence[str]) -> RoleChecker:
    return RoleChecker(roles)


require_admin = require_roles(["admin"])
require_vendeur = require_roles(["vendeur"])


def ensure_self_or_admin(current_user: User, user_id: int) -> None:
    """403 si l'utilisateur agit sur les données d'un autre sans être admin."""
    if current_user.id != user_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Accès refusé",
        )
