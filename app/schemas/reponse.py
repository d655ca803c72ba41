"""
Schémas Pydantic pour les réponses des vendeurs.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.models.reponse import Reponse
from app.schemas.common import ClientModel, ImageIn, ImageRef, images_to_client
from app.schemas.demande import DemandeSummary
from app.schemas.user import UserOut


class ReponseCreate(ClientModel):
    """Schéma pour répondre à une demande (le texte est vérifié après nettoyage)."""
    message: Optional[str] = Field(None, max_length=5000)
    images: Optional[List[ImageIn]] = None


class ReponseOut(ClientModel):
    """Réponse d'un vendeur, avec son profil et le résumé de la demande."""
    id: str = Field(..., alias="_id")
    demande_id: str
    demande: Optional[DemandeSummary] = None
    vendeur_id: str
    vendeur: Optional[UserOut] = None
    message: str
    images: List[ImageRef] = []
    date_creation: Optional[datetime] = None

    @classmethod
    def from_model(cls, reponse: Reponse) -> "ReponseOut":
        return cls(
            id=str(reponse.id),
            demande_id=str(reponse.demande_id),
            demande=DemandeSummary.from_model(reponse.demande) if reponse.demande else None,
            vendeur_id=str(reponse.vendeur_id),
            vendeur=UserOut.public(reponse.vendeur) if reponse.vendeur else None,
            message=reponse.message,
            images=images_to_client(reponse.images),
            date_creation=reponse.created_at,
        )


class ReponseEnvelope(ClientModel):
    reponse: ReponseOut


class ReponseList(ClientModel):
    reponses: List[ReponseOut]
