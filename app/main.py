"""
Local Deals Togo - API des demandes d'achat.
Les acheteurs publient ce qu'ils cherchent, les vendeurs répondent et discutent avec eux.
"""

import time
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import Database
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging, logger, log_request
from app.core.security import decode_token
from app.api.v1.router import api_router
from app.services.image_service import ImageStorage


setup_logging(
    level=settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO"),
    log_file=settings.LOG_FILE,
    rotation=settings.LOG_ROTATION,
    retention=settings.LOG_RETENTION,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ouvre la base et l'hébergement d'images au démarrage, ferme la base à l'arrêt."""
    logger.info(f"Démarrage de {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")

    database = Database(settings.DATABASE_URL, slow_query_ms=settings.DB_SLOW_QUERY_MS)
    if not database.check_connection():
        logger.error("Base de données injoignable au démarrage")
    elif settings.DEBUG:
        # En production le schéma est géré par Alembic
        database.create_all()

    image_storage = ImageStorage.from_settings(settings)
    if image_storage is None:
        logger.warning("Cloudinary non configuré: les routes /upload répondront 503")

    app.state.database = database
    app.state.image_storage = image_storage

    yield

    database.dispose()
    logger.info("Application arrêtée")


app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "Demandes d'achat, offres des vendeurs, messagerie et notifications.\n\n"
        "Rôles: **acheteur** (publie des demandes), **vendeur** (y répond), "
        "**admin** (modération)."
    ),
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_tags=[
        {"name": "Authentification", "description": "Inscription, connexion, token JWT"},
        {"name": "Utilisateurs", "description": "Profils publics et modification"},
        {"name": "Demandes", "description": "Demandes d'achat des acheteurs"},
        {"name": "Réponses", "description": "Offres des vendeurs"},
        {"name": "Messagerie", "description": "Messages et conversations"},
        {"name": "Notifications", "description": "Notifications in-app"},
        {"name": "Administration", "description": "Modération de la plateforme"},
        {"name": "Images", "description": "Hébergement des images"},
        {"name": "Statistiques", "description": "Chiffres publics"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def request_logging(request: Request, call_next: Callable) -> Response:
    """Journalise chaque requête avec sa durée et l'utilisateur du token s'il y en a un."""
    started = time.perf_counter()

    user_id = None
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        claims = decode_token(authorization[7:], verify_exp=False)
        if claims:
            user_id = claims.get("sub")

    response = await call_next(request)

    duration_ms = (time.perf_counter() - started) * 1000
    log_request(request.method, request.url.path, response.status_code, duration_ms, user_id)
    response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"
    return response


app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/health", tags=["Système"], summary="État de l'application")
async def health_check(request: Request):
    database = getattr(request.app.state, "database", None)
    db_ok = database is not None and database.check_connection()

    return {
        "status": "ok" if db_ok else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "ok" if db_ok else "error",
        "images": "ok" if getattr(request.app.state, "image_storage", None) else "disabled",
    }


@app.get("/", tags=["Système"])
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/health",
        "api": settings.API_PREFIX,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
