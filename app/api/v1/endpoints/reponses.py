"""
Routes des réponses des vendeurs aux demandes.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.database import get_db
from app.config import settings
from app.core.logging import logger
from app.models.demande import Demande
from app.models.reponse import Reponse
from app.models.user import User
from app.schemas.common import normalize_images
from app.schemas.reponse import ReponseCreate, ReponseOut, ReponseEnvelope, ReponseList
from app.api.deps import get_current_user, require_vendeur
from app.api.v1.endpoints.demandes import get_visible_demande
from app.services.notification_service import NotificationService


router = APIRouter()

DUPLICATE_REPONSE = "Vous avez déjà répondu à cette demande"


def find_reponse(db: Session, demande_id: int, vendeur_id: int) -> Optional[Reponse]:
    return db.query(Reponse).filter(
        Reponse.demande_id == demande_id,
        Reponse.vendeur_id == vendeur_id,
    ).first()


@router.post(
    "/demandes/{demande_id}/reponses",
    response_model=ReponseEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Répondre à une demande",
)
async def create_reponse(
    demande_id: int,
    reponse_data: ReponseCreate,
    current_user: User = Depends(require_vendeur),
    db: Session = Depends(get_db),
) -> Any:
    """
    Enregistre la réponse d'un vendeur et notifie l'auteur de la demande.

    Une seule réponse par vendeur et par demande; elle n'est plus modifiable ensuite.
    """
    text = (reponse_data.message or "").strip()
    if not text:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message requis",
        )

    demande = get_visible_demande(db, demande_id)

    if demande.acheteur_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Vous ne pouvez pas répondre à votre propre demande",
        )

    if find_reponse(db, demande.id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=DUPLICATE_REPONSE,
        )

    reponse = Reponse(
        demande_id=demande.id,
        vendeur_id=current_user.id,
        message=text,
        images=normalize_images(reponse_data.images, settings.MAX_IMAGES),
    )
    db.add(reponse)
    try:
        db.commit()
    except IntegrityError:
        # Deux réponses simultanées: la contrainte d'unicité tranche
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=DUPLICATE_REPONSE,
        )
    db.refresh(reponse)

    logger.info(f"Réponse {reponse.id} du vendeur {current_user.id} à la demande {demande.id}")

    NotificationService(db).notify_new_reponse(reponse, demande, current_user)

    return ReponseEnvelope(reponse=ReponseOut.from_model(reponse))


@router.get(
    "/reponses",
    response_model=ReponseList,
    summary="Lister les réponses",
)
async def list_reponses(
    demande_id: Optional[int] = Query(None, alias="demandeId"),
    vendeur_id: Optional[int] = Query(None, alias="vendeurId"),
    acheteur_id: Optional[int] = Query(None, alias="acheteurId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Any:
    """
    Réponses les plus récentes en premier.

    - **demandeId**: réponses à une demande
    - **vendeurId**: réponses d'un vendeur
    - **acheteurId**: réponses aux demandes (non supprimées) d'un acheteur
    """
    query = db.query(Reponse).options(
        joinedload(Reponse.vendeur),
        joinedload(Reponse.demande),
    )

    if demande_id is not None:
        query = query.filter(Reponse.demande_id == demande_id)
    if vendeur_id is not None:
        query = query.filter(Reponse.vendeur_id == vendeur_id)
    if acheteur_id is not None:
        demande_ids = db.query(Demande.id).filter(
            Demande.acheteur_id == acheteur_id,
            Demande.status != "deleted",
        )
        query = query.filter(Reponse.demande_id.in_(demande_ids.scalar_subquery()))

    reponses = query.order_by(
        Reponse.created_at.desc(), Reponse.id.desc()
    ).limit(settings.REPONSES_LIMIT).all()

    return ReponseList(reponses=[ReponseOut.from_model(r) for r in reponses])
