"""
Endpoints de l'API v1.
"""

from . import auth, users, demandes, reponses, messages, notifications, admin, upload, stats

__all__ = [
    "auth",
    "users",
    "demandes",
    "reponses",
    "messages",
    "notifications",
    "admin",
    "upload",
    "stats",
]
