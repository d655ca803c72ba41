"""
Schémas Pydantic pour les demandes.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import Field, field_validator

from app.models.demande import Demande, CATEGORY_LABEL_TO_ID
from app.schemas.common import ClientModel, ImageIn, ImageRef, images_to_client
from app.schemas.user import UserOut


class DemandeCreate(ClientModel):
    """Schéma pour la publication d'une demande."""
    titre: str = Field(..., min_length=1, max_length=140)
    description: str = Field(..., min_length=1, max_length=5000)
    budget: Decimal = Field(..., ge=0, description="Budget en FCFA")
    categorie: str = Field(..., description="Identifiant court ou libellé de catégorie")
    localisation: str = Field(..., min_length=1, max_length=140)
    images: Optional[List[ImageIn]] = None
    badge: Optional[Literal["new", "urgent", "top", "sponsored"]] = None

    @field_validator("titre", "description", "localisation")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Ce champ est requis")
        return v


class DemandeStatusUpdate(ClientModel):
    """Ouverture / clôture d'une demande par son auteur."""
    status: Literal["active", "closed"]


class DemandeSummary(ClientModel):
    """Résumé d'une demande, joint aux réponses."""
    id: str = Field(..., alias="_id")
    acheteur_id: str
    titre: str
    budget: float
    categorie: str
    localisation: str
    badge: Optional[str] = None
    status: str
    date_creation: Optional[datetime] = None

    @classmethod
    def from_model(cls, demande: Demande) -> "DemandeSummary":
        return cls(
            id=str(demande.id),
            acheteur_id=str(demande.acheteur_id),
            titre=demande.titre,
            budget=float(demande.budget),
            categorie=demande.categorie,
            localisation=demande.localisation,
            badge=demande.badge,
            status=demande.status,
            date_creation=demande.created_at,
        )


class DemandeOut(ClientModel):
    """Demande telle qu'affichée au client."""
    id: str = Field(..., alias="_id")
    acheteur_id: str
    acheteur: Optional[UserOut] = None
    titre: str
    description: str
    budget: float
    images: List[ImageRef] = []
    categorie: str
    categorie_label: str
    localisation: str
    badge: Optional[str] = None
    status: str
    date_creation: Optional[datetime] = None

    @classmethod
    def from_model(cls, demande: Demande) -> "DemandeOut":
        acheteur = demande.acheteur
        return cls(
            id=str(demande.id),
            acheteur_id=str(demande.acheteur_id),
            acheteur=UserOut.public(acheteur) if acheteur is not None else None,
            titre=demande.titre,
            description=demande.description,
            budget=float(demande.budget),
            images=images_to_client(demande.images),
            categorie=CATEGORY_LABEL_TO_ID.get(demande.categorie, demande.categorie),
            categorie_label=demande.categorie,
            localisation=demande.localisation,
            badge=demande.badge,
            # Une demande supprimée encore visible (admin) est présentée comme close
            status="closed" if demande.status == "deleted" else demande.status,
            date_creation=demande.created_at,
        )


class DemandeEnvelope(ClientModel):
    demande: DemandeOut


class DemandeList(ClientModel):
    demandes: List[DemandeOut]
