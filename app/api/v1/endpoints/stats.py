"""
Statistiques publiques de la plateforme.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.demande import Demande
from app.models.message import Message
from app.models.reponse import Reponse
from app.models.user import User
from app.schemas.admin import PublicStats


router = APIRouter()


@router.get(
    "",
    response_model=PublicStats,
    summary="Chiffres clés de la plateforme",
)
async def get_public_stats(
    db: Session = Depends(get_db),
) -> Any:
    return PublicStats(
        total_users=db.query(func.count(User.id)).scalar() or 0,
        total_demandes=db.query(func.count(Demande.id)).filter(
            Demande.status != "deleted"
        ).scalar() or 0,
        total_reponses=db.query(func.count(Reponse.id)).scalar() or 0,
        total_messages=db.query(func.count(Message.id)).scalar() or 0,
    )
