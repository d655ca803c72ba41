"""
Modèle AdminAction - Journal des actions de modération.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Index

from app.database import Base


class AdminAction(Base):
    """Trace d'une action d'administration (bannissement, suppression, message...)."""

    __tablename__ = "admin_actions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    admin_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    action = Column(String(50), nullable=False)
    target_user_id = Column(Integer, nullable=True)
    target_demande_id = Column(Integer, nullable=True)
    details = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_admin_action_admin", "admin_id"),
        Index("idx_admin_action_date", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<AdminAction(id={self.id}, admin={self.admin_id}, action='{self.action}')>"
