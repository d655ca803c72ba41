"""
Briques transverses: journalisation et sécurité.
"""

from .logging import logger, setup_logging
from .security import hash_password, check_password, issue_token, token_user_id

__all__ = [
    "logger",
    "setup_logging",
    "hash_password",
    "check_password",
    "issue_token",
    "token_user_id",
]
