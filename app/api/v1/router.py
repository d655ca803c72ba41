"""
Routeur principal de l'API v1.
Regroupe toutes les routes des différents modules.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    users,
    demandes,
    reponses,
    messages,
    notifications,
    admin,
    upload,
    stats,
)

api_router = APIRouter()

# Routes d'authentification
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentification"],
)

# Routes utilisateurs
api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Utilisateurs"],
)

# Routes demandes
api_router.include_router(
    demandes.router,
    prefix="/demandes",
    tags=["Demandes"],
)

# Routes réponses (/demandes/{id}/reponses et /reponses)
api_router.include_router(
    reponses.router,
    tags=["Réponses"],
)

# Routes messagerie (/messages et /conversations)
api_router.include_router(
    messages.router,
    tags=["Messagerie"],
)

# Routes notifications
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"],
)

# Routes administration
api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Administration"],
)

# Routes images
api_router.include_router(
    upload.router,
    prefix="/upload",
    tags=["Images"],
)

# Statistiques publiques
api_router.include_router(
    stats.router,
    prefix="/stats",
    tags=["Statistiques"],
)
