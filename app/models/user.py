"""
Modèle User - Utilisateurs de la plateforme Local Deals Togo.
Gère les informations personnelles, l'authentification, les rôles et les bannissements.
"""

import enum
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, Enum,
    Index,
)

from app.database import Base


class UserRole(str, enum.Enum):
    """Rôles disponibles pour les utilisateurs."""
    ACHETEUR = "acheteur"       # Publie des demandes
    VENDEUR = "vendeur"         # Répond aux demandes
    ADMIN = "admin"             # Modération de la plateforme


class BanType(str, enum.Enum):
    """Types de bannissement."""
    TEMPORARY = "temporary"     # Levé automatiquement à l'expiration
    PERMANENT = "permanent"


AVATAR_FALLBACK_URL = "https://ui-avatars.com/api/?name={name}&background=2563EB&color=fff"


class User(Base):
    """
    Modèle représentant un utilisateur de la plateforme.

    Attributes:
        id: Identifiant unique
        role: acheteur, vendeur ou admin
        nom: Nom affiché
        email: Adresse email (unique, en minuscules)
        hashed_password: Mot de passe hashé
        telephone: Numéro de téléphone
        localisation: Ville / quartier
        avatar_url: URL de l'avatar hébergé
        avatar_public_id: Identifiant de l'avatar chez l'hébergeur d'images
        is_banned: Compte suspendu
        ban_type: temporary ou permanent
        ban_reason: Motif de la suspension
        ban_expiry: Fin d'une suspension temporaire
        created_at: Date de création du compte
        last_login: Date de dernière connexion
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    role = Column(
        Enum('acheteur', 'vendeur', 'admin', name='userrole', native_enum=False),
        default='acheteur',
        nullable=False,
    )
    nom = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    telephone = Column(String(30), default="", nullable=False)
    localisation = Column(String(140), default="", nullable=False)

    avatar_url = Column(String(500), nullable=True)
    avatar_public_id = Column(String(255), nullable=True)

    # Bannissement
    is_banned = Column(Boolean, default=False, nullable=False)
    ban_type = Column(
        Enum('temporary', 'permanent', name='bantype', native_enum=False),
        nullable=True,
    )
    ban_reason = Column(Text, nullable=True)
    ban_expiry = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, default=datetime.utcnow, nullable=True)

    __table_args__ = (
        Index("idx_user_role", "role"),
        Index("idx_user_banned", "is_banned"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_vendeur(self) -> bool:
        return self.role == "vendeur"

    def has_expired_ban(self, now: Optional[datetime] = None) -> bool:
        """Vrai si l'utilisateur porte une suspension temporaire arrivée à échéance."""
        now = now or datetime.utcnow()
        return bool(
            self.is_banned
            and self.ban_type == "temporary"
            and self.ban_expiry is not None
            and self.ban_expiry <= now
        )

    def ban_active(self, now: Optional[datetime] = None) -> bool:
        """Vrai si la suspension doit être appliquée maintenant."""
        return bool(self.is_banned) and not self.has_expired_ban(now)

    def clear_ban(self) -> None:
        """Efface l'état de suspension."""
        self.is_banned = False
        self.ban_type = None
        self.ban_reason = None
        self.ban_expiry = None

    @property
    def avatar(self) -> str:
        """URL de l'avatar, ou avatar généré à partir du nom."""
        if self.avatar_url:
            return self.avatar_url
        return AVATAR_FALLBACK_URL.format(name=quote(self.nom or ""))
