"""
Format des erreurs renvoyées au client.

Toute erreur a la forme `{"message": ...}`; les erreurs de validation
ajoutent `errors`, la liste des champs en cause.
"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.logging import logger


async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Un détail structuré (suspension de compte) est transmis tel quel
    if isinstance(exc.detail, dict) and "message" in exc.detail:
        content = exc.detail
    else:
        content = {"message": exc.detail}
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers=getattr(exc, "headers", None),
    )


async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Champs manquants ou mal formés: 400 avec le détail par champ."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path}: données invalides {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder({"message": "Données invalides", "errors": errors}),
    )


async def integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Conflit d'intégrité sur {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"message": "Cette ressource existe déjà"},
    )


async def database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Erreur base de données sur {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Une erreur est survenue lors de l'accès aux données"},
    )


async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Erreur non gérée sur {request.method} {request.url.path}")
    content = {"message": "Erreur interne du serveur"}
    if settings.DEBUG:
        content["type"] = type(exc).__name__
        content["detail"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_error)
    app.add_exception_handler(RequestValidationError, validation_error)
    app.add_exception_handler(IntegrityError, integrity_error)
    app.add_exception_handler(SQLAlchemyError, database_error)
    app.add_exception_handler(Exception, unexpected_error)
