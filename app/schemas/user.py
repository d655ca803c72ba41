"""
Schémas Pydantic pour les utilisateurs.
Validation des données d'entrée et sérialisation des réponses.
"""

from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field, field_validator

from app.models.user import User
from app.schemas.common import ClientModel, ImageIn


class UserRegister(ClientModel):
    """Schéma pour l'inscription."""
    nom: str = Field(..., min_length=2, max_length=120, description="Nom affiché")
    email: EmailStr = Field(..., description="Adresse email")
    password: str = Field(..., min_length=6, description="Mot de passe (min 6 caractères)")
    role: Optional[str] = Field(None, description="acheteur (défaut) ou vendeur")
    telephone: Optional[str] = Field(None, max_length=30)
    localisation: Optional[str] = Field(None, max_length=140)

    @field_validator("nom")
    @classmethod
    def strip_nom(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Le nom doit contenir au moins 2 caractères")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UserLogin(ClientModel):
    """Schéma pour la connexion."""
    email: EmailStr = Field(..., description="Adresse email")
    password: str = Field(..., min_length=1, description="Mot de passe")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UserUpdate(ClientModel):
    """Champs modifiables par l'utilisateur lui-même."""
    nom: Optional[str] = Field(None, min_length=2, max_length=120)
    telephone: Optional[str] = Field(None, max_length=30)
    localisation: Optional[str] = Field(None, max_length=140)
    avatar: Optional[ImageIn] = None


class UserOut(ClientModel):
    """Profil public d'un utilisateur (jamais de mot de passe)."""
    id: str = Field(..., alias="_id")
    role: str = "acheteur"
    nom: str
    email: Optional[str] = None
    telephone: str = ""
    localisation: str = ""
    avatar: str = ""
    is_banned: bool = False
    ban_type: Optional[str] = None
    ban_reason: Optional[str] = None
    ban_expiry: Optional[datetime] = None
    date_creation: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @classmethod
    def from_model(cls, user: User) -> "UserOut":
        banned = user.ban_active()
        return cls(
            id=str(user.id),
            role=user.role,
            nom=user.nom,
            email=user.email,
            telephone=user.telephone or "",
            localisation=user.localisation or "",
            avatar=user.avatar,
            is_banned=banned,
            ban_type=user.ban_type if banned else None,
            ban_reason=user.ban_reason if banned else None,
            ban_expiry=user.ban_expiry if banned else None,
            date_creation=user.created_at,
            last_login=user.last_login,
        )

    @classmethod
    def public(cls, user: User) -> "UserOut":
        """Profil vu par un tiers: sans email."""
        profile = cls.from_model(user)
        profile.email = None
        return profile

    @classmethod
    def placeholder(cls, user_id: int) -> "UserOut":
        """Profil de remplacement pour un utilisateur introuvable."""
        return cls(id=str(user_id), nom="Utilisateur", role="acheteur", avatar="")


class UserEnvelope(ClientModel):
    user: UserOut


class AuthResponse(ClientModel):
    """Réponse d'inscription / connexion."""
    token: str
    user: UserOut
