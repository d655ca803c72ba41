"""
Journal des actions d'administration.
"""

from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.logging import logger, log_admin_action
from app.models.admin_action import AdminAction


def record_admin_action(
    db: Session,
    admin_id: int,
    action: str,
    target_user_id: Optional[int] = None,
    target_demande_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[AdminAction]:
    """
    Enregistre une action d'administration.
    Un échec d'écriture est journalisé sans interrompre l'action elle-même.
    """
    target = None
    if target_user_id:
        target = f"user {target_user_id}"
    elif target_demande_id:
        target = f"demande {target_demande_id}"
    log_admin_action(admin_id, action, target, details)

    entry = AdminAction(
        admin_id=admin_id,
        action=action,
        target_user_id=target_user_id,
        target_demande_id=target_demande_id,
        details=details or {},
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erreur d'enregistrement de l'action admin '{action}': {e}")
        return None
    return entry
