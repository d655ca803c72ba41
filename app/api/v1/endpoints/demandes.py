"""
Routes de gestion des demandes d'achat.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.config import settings
from app.core.logging import logger
from app.models.demande import Demande, normalize_categorie
from app.models.user import User
from app.schemas.common import SuccessResponse, normalize_images
from app.schemas.demande import (
    DemandeCreate,
    DemandeStatusUpdate,
    DemandeOut,
    DemandeEnvelope,
    DemandeList,
)
from app.api.deps import get_current_user
from app.services.notification_service import NotificationService


router = APIRouter()


def get_visible_demande(db: Session, demande_id: int) -> Demande:
    """
    Retourne une demande non supprimée.

    Raises:
        HTTPException: 404 si la demande n'existe pas ou a été supprimée
    """
    demande = db.query(Demande).options(joinedload(Demande.acheteur)).filter(
        Demande.id == demande_id,
        Demande.status != "deleted",
    ).first()
    if not demande:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Demande non trouvée",
        )
    return demande


def ensure_owner_or_admin(demande: Demande, user: User) -> None:
    if demande.acheteur_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vous n'êtes pas l'auteur de cette demande",
        )


@router.post(
    "",
    response_model=DemandeEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Publier une demande",
)
async def create_demande(
    demande_data: DemandeCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """
    Publie une demande et notifie les vendeurs.

    La catégorie est acceptée sous forme d'identifiant court (`electronique`)
    ou de libellé (`Électronique`).
    """
    categorie = normalize_categorie(demande_data.categorie)
    if categorie is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Catégorie invalide",
        )

    demande = Demande(
        acheteur_id=current_user.id,
        titre=demande_data.titre,
        description=demande_data.description,
        budget=demande_data.budget,
        images=normalize_images(demande_data.images, settings.MAX_IMAGES),
        categorie=categorie,
        localisation=demande_data.localisation,
        badge=demande_data.badge or "new",
        status="active",
    )
    db.add(demande)
    db.commit()
    db.refresh(demande)

    logger.info(f"Demande {demande.id} publiée par {current_user.id} ({categorie})")

    NotificationService(db).notify_vendeurs_new_demande(demande)

    return DemandeEnvelope(demande=DemandeOut.from_model(demande))


@router.get(
    "",
    response_model=DemandeList,
    summary="Lister les demandes",
)
async def list_demandes(
    search: Optional[str] = Query(None, description="Recherche dans le titre et la description"),
    categorie: Optional[str] = Query(None, description="Identifiant ou libellé de catégorie"),
    acheteur_id: Optional[int] = Query(None, alias="acheteurId"),
    db: Session = Depends(get_db),
) -> Any:
    """Demandes non supprimées, les plus récentes en premier."""
    query = db.query(Demande).options(joinedload(Demande.acheteur)).filter(
        Demande.status != "deleted"
    )

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(Demande.titre.ilike(pattern), Demande.description.ilike(pattern))
        )

    if categorie:
        query = query.filter(
            Demande.categorie == (normalize_categorie(categorie) or categorie)
        )

    if acheteur_id is not None:
        query = query.filter(Demande.acheteur_id == acheteur_id)

    demandes = query.order_by(
        Demande.created_at.desc(), Demande.id.desc()
    ).limit(settings.DEMANDES_LIMIT).all()

    return DemandeList(demandes=[DemandeOut.from_model(d) for d in demandes])


@router.get(
    "/{demande_id}",
    response_model=DemandeEnvelope,
    summary="Détails d'une demande",
)
async def get_demande(
    demande_id: int,
    db: Session = Depends(get_db),
) -> Any:
    demande = get_visible_demande(db, demande_id)
    return DemandeEnvelope(demande=DemandeOut.from_model(demande))


@router.patch(
    "/{demande_id}/status",
    response_model=DemandeEnvelope,
    summary="Ouvrir ou clôturer une demande",
)
async def update_demande_status(
    demande_id: int,
    status_data: DemandeStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Change le statut (active / closed); réservé à l'auteur ou à un admin."""
    demande = get_visible_demande(db, demande_id)
    ensure_owner_or_admin(demande, current_user)

    demande.status = status_data.status
    db.commit()
    db.refresh(demande)

    logger.info(f"Demande {demande.id} -> {demande.status} par {current_user.id}")
    return DemandeEnvelope(demande=DemandeOut.from_model(demande))


@router.delete(
    "/{demande_id}",
    response_model=SuccessResponse,
    summary="Supprimer une demande",
)
async def delete_demande(
    demande_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """Suppression logique: la demande disparaît des listes publiques."""
    demande = get_visible_demande(db, demande_id)
    ensure_owner_or_admin(demande, current_user)

    demande.status = "deleted"
    db.commit()

    logger.info(f"Demande {demande.id} supprimée par {current_user.id}")
    return SuccessResponse(message="Demande supprimée")
