"""
API HTTP de Local Deals Togo (routes sous /api/v1).
"""

from .deps import get_current_user, require_admin, require_vendeur

__all__ = [
    "get_current_user",
    "require_admin",
    "require_vendeur",
]
