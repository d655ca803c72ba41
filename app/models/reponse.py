"""
Modèle Reponse - Réponse d'un vendeur à une demande.
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, DateTime, Text, JSON,
    ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base


class Reponse(Base):
    """
    Une réponse par couple (demande, vendeur); non modifiable après création.
    """

    __tablename__ = "reponses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    demande_id = Column(Integer, ForeignKey("demandes.id"), nullable=False)
    vendeur_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    message = Column(Text, nullable=False)
    images = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    demande = relationship("Demande")
    vendeur = relationship("User")

    __table_args__ = (
        UniqueConstraint("demande_id", "vendeur_id", name="uq_reponse_demande_vendeur"),
        Index("idx_reponse_vendeur", "vendeur_id"),
        Index("idx_reponse_date", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Reponse(id={self.id}, demande={self.demande_id}, vendeur={self.vendeur_id})>"
