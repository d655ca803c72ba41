"""
Routes de gestion des profils utilisateurs.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.logging import logger
from app.models.user import User
from app.schemas.user import UserOut, UserUpdate, UserEnvelope
from app.api.deps import get_current_user, get_optional_current_user, ensure_self_or_admin


router = APIRouter()


@router.get(
    "/{user_id}",
    response_model=UserEnvelope,
    summary="Profil public d'un utilisateur",
)
async def get_user(
    user_id: int,
    viewer: Optional[User] = Depends(get_optional_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """
    Retourne le profil public d'un utilisateur.
    L'email n'est visible que par l'utilisateur lui-même et les administrateurs.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Utilisateur non trouvé",
        )

    if viewer is not None and (viewer.id == user.id or viewer.is_admin):
        return UserEnvelope(user=UserOut.from_model(user))
    return UserEnvelope(user=UserOut.public(user))


@router.put(
    "/{user_id}",
    response_model=UserEnvelope,
    summary="Modifier un profil",
)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Met à jour nom, téléphone, localisation et avatar (soi-même ou admin)."""
    ensure_self_or_admin(current_user, user_id)

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Utilisateur non trouvé",
        )

    if user_data.nom is not None:
        user.nom = user_data.nom.strip()
    if user_data.telephone is not None:
        user.telephone = user_data.telephone.strip()
    if user_data.localisation is not None:
        user.localisation = user_data.localisation.strip()
    if user_data.avatar is not None:
        if user_data.avatar.url and user_data.avatar.public_id:
            user.avatar_url = user_data.avatar.url
            user.avatar_public_id = user_data.avatar.public_id
        else:
            user.avatar_url = None
            user.avatar_public_id = None

    db.commit()
    db.refresh(user)

    logger.info(f"Profil {user.id} mis à jour par {current_user.id}")
    return UserEnvelope(user=UserOut.from_model(user))
