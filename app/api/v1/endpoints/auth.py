"""
Routes d'authentification - Inscription, connexion, profil courant.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.security import issue_token, check_password, hash_password
from app.core.logging import logger
from app.models.user import User
from app.schemas.user import UserRegister, UserLogin, UserOut, UserEnvelope, AuthResponse
from app.api.deps import get_current_user, ban_exception
from app.services.notification_service import NotificationService
from app.services.user_service import lift_expired_ban


router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Inscription d'un nouvel utilisateur",
)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
) -> Any:
    """
    Crée un nouveau compte et retourne un token.

    - **nom**: Nom affiché
    - **email**: Adresse email unique
    - **password**: Mot de passe (min 6 caractères)
    - **role**: `vendeur` pour un compte vendeur, acheteur sinon
    """
    logger.info(f"Tentative d'inscription: {user_data.email}")

    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        logger.warning(f"Email déjà utilisé: {user_data.email}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Un compte existe déjà avec cet email",
        )

    user = User(
        nom=user_data.nom,
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        # Un compte admin ne se crée pas par inscription
        role="vendeur" if user_data.role == "vendeur" else "acheteur",
        telephone=(user_data.telephone or "").strip(),
        localisation=(user_data.localisation or "").strip(),
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Nouvel utilisateur créé: {user.email} (ID: {user.id}, rôle: {user.role})")

    token = issue_token(user.id, user.role)
    return AuthResponse(token=token, user=UserOut.from_model(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Connexion utilisateur",
)
async def login(
    credentials: UserLogin,
    db: Session = Depends(get_db),
) -> Any:
    """
    Authentifie un utilisateur et retourne un token JWT.

    Crée au passage les notifications manquées depuis la dernière connexion.
    """
    logger.info(f"Tentative de connexion: {credentials.email}")

    user = db.query(User).filter(User.email == credentials.email).first()
    if not user or not check_password(credentials.password, user.hashed_password):
        logger.warning(f"Échec de connexion pour: {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou mot de passe incorrect",
        )

    lift_expired_ban(db, user)
    if user.ban_active():
        logger.warning(f"Connexion refusée, compte suspendu: {user.email}")
        raise ban_exception(user)

    previous_login = user.last_login
    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    # Ne jamais bloquer la connexion si les notifications échouent
    try:
        NotificationService(db).catch_up_on_login(user, previous_login)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erreur de rattrapage des notifications pour {user.id}: {e}")

    logger.info(f"Connexion réussie: {user.email}")

    token = issue_token(user.id, user.role)
    return AuthResponse(token=token, user=UserOut.from_model(user))


@router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Profil de l'utilisateur connecté",
)
async def get_me(
    current_user: User = Depends(get_current_user),
) -> Any:
    """Retourne le profil de l'utilisateur authentifié."""
    return UserEnvelope(user=UserOut.from_model(current_user))
