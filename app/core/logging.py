"""
Journalisation Loguru de l'API: console, fichier applicatif et fichier d'erreurs.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = "logs/localdeals.log",
    rotation: str = "10 MB",
    retention: str = "30 days",
) -> None:
    """
    Remplace les sinks Loguru par ceux de l'application.

    Sans `log_file`, seule la console est utilisée. Sinon les erreurs sont
    aussi copiées dans `errors.log`, à côté du fichier principal.
    """
    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=level, colorize=True, backtrace=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_options = dict(
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            enqueue=True,
        )
        logger.add(str(log_path), level=level, **file_options)
        logger.add(str(log_path.parent / "errors.log"), level="ERROR", **file_options)

    logger.debug(f"Logging initialisé (niveau {level}, fichier {log_file or '-'})")


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    user_id: Optional[str] = None,
) -> None:
    """Une ligne par requête HTTP; niveau selon le code de statut."""
    if status_code >= 500:
        level = "ERROR"
    elif status_code >= 400:
        level = "WARNING"
    else:
        level = "INFO"
    who = f" [user {user_id}]" if user_id else ""
    logger.bind(
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
        user_id=user_id,
    ).log(level, f"{method} {path} -> {status_code} ({duration_ms:.1f}ms){who}")


def log_slow_query(statement: str, duration_ms: float) -> None:
    """Requête SQL au-delà du seuil DB_SLOW_QUERY_MS."""
    logger.bind(duration_ms=duration_ms).warning(
        f"Requête SQL lente ({duration_ms:.0f}ms): {' '.join(statement.split())[:200]}"
    )


def log_notification_sent(
    notification_type: str,
    recipients: int,
    success: bool,
    reference: str = "",
) -> None:
    """
    Trace la création d'un lot de notifications in-app.

    Args:
        notification_type: message, reponse, nouvelle_demande, admin ou ban
        recipients: Nombre de destinataires
        success: Insertion réussie
        reference: Origine du lot (conversation, demande, utilisateur...)
    """
    if success:
        logger.info(f"Notifications {notification_type}: {recipients} créée(s) ({reference})")
    else:
        logger.warning(f"Notifications {notification_type}: échec pour {recipients} destinataire(s) ({reference})")


def log_admin_action(
    admin_id: int,
    action: str,
    target: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    logger.bind(admin_id=admin_id, action=action, details=details).info(
        f"Modération: admin {admin_id} {action}" + (f" -> {target}" if target else "")
    )
