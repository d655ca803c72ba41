"""
Modèle Demande - Demandes d'achat publiées par les acheteurs.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Numeric, Enum, JSON,
    ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base


class DemandeStatus(str, enum.Enum):
    """Cycle de vie d'une demande."""
    ACTIVE = "active"
    CLOSED = "closed"
    DELETED = "deleted"         # Suppression logique


class DemandeBadge(str, enum.Enum):
    NEW = "new"
    URGENT = "urgent"
    TOP = "top"
    SPONSORED = "sponsored"


# Le client manipule des identifiants courts, la base stocke les libellés
CATEGORY_ID_TO_LABEL = {
    "electronique": "Électronique",
    "mode": "Mode & Vêtements",
    "maison": "Maison & Jardin",
    "vehicules": "Véhicules",
    "services": "Services",
    "loisirs": "Loisirs & Sports",
    "immobilier": "Immobilier",
    "autre": "Autre",
}

CATEGORY_LABEL_TO_ID = {label: key for key, label in CATEGORY_ID_TO_LABEL.items()}

CATEGORY_LABELS = tuple(CATEGORY_ID_TO_LABEL.values())


def normalize_categorie(value: Optional[str]) -> Optional[str]:
    """
    Retourne le libellé de catégorie correspondant à un identifiant court
    ou à un libellé, None si la catégorie est inconnue.
    """
    if not value:
        return None
    v = str(value).strip()
    if v in CATEGORY_ID_TO_LABEL:
        return CATEGORY_ID_TO_LABEL[v]
    if v in CATEGORY_LABEL_TO_ID:
        return v
    return None


class Demande(Base):
    """
    Modèle représentant une demande d'achat.

    Attributes:
        id: Identifiant unique
        acheteur_id: Auteur de la demande
        titre: Titre court
        description: Description détaillée
        budget: Budget en FCFA
        images: Liste de {url, publicId}
        categorie: Libellé de catégorie
        localisation: Lieu
        badge: Mise en avant (new, urgent, top, sponsored)
        status: active, closed ou deleted
        created_at: Date de publication
    """

    __tablename__ = "demandes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    acheteur_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    titre = Column(String(140), nullable=False)
    description = Column(Text, nullable=False)
    budget = Column(Numeric(14, 2), nullable=False)
    images = Column(JSON, default=list, nullable=False)

    categorie = Column(
        Enum(*CATEGORY_LABELS, name='demandecategorie', native_enum=False),
        nullable=False,
    )
    localisation = Column(String(140), nullable=False)
    badge = Column(
        Enum('new', 'urgent', 'top', 'sponsored', name='demandebadge', native_enum=False),
        nullable=True,
    )
    status = Column(
        Enum('active', 'closed', 'deleted', name='demandestatus', native_enum=False),
        default='active',
        nullable=False,
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    acheteur = relationship("User")

    __table_args__ = (
        Index("idx_demande_acheteur", "acheteur_id"),
        Index("idx_demande_categorie", "categorie"),
        Index("idx_demande_status_date", "status", "created_at"),
        CheckConstraint("budget >= 0", name="positive_budget"),
    )

    def __repr__(self) -> str:
        return f"<Demande(id={self.id}, titre='{self.titre}', status={self.status})>"

    @property
    def is_deleted(self) -> bool:
        return self.status == "deleted"
