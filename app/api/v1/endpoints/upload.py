"""
Routes d'envoi et de suppression d'images.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.datastructures import UploadFile

from app.config import settings
from app.core.logging import logger
from app.models.user import User
from app.schemas.common import ClientModel, ImageRef
from app.api.deps import get_current_user
from app.services.image_service import ImageStorage, ImageStorageError, get_image_storage


router = APIRouter()


class Base64Upload(ClientModel):
    base64: str


class DestroyResult(ClientModel):
    result: str


def storage_failure() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Échec de l'envoi de l'image",
    )


@router.post(
    "",
    response_model=ImageRef,
    status_code=status.HTTP_201_CREATED,
    summary="Envoyer une image (multipart)",
)
async def upload_image(
    request: Request,
    current_user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
) -> Any:
    """
    Héberge le premier fichier du formulaire, quel que soit le nom du champ.
    Formats: jpg, jpeg, png, webp, gif; 8 Mo maximum.
    """
    form = await request.form()
    upload = next(
        (value for _, value in form.multi_items() if isinstance(value, UploadFile)),
        None,
    )
    if upload is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Aucun fichier envoyé",
        )

    if upload.content_type and not upload.content_type.startswith("image/"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Le fichier doit être une image",
        )

    content = await upload.read()
    if len(content) > settings.UPLOAD_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Image trop volumineuse (8 Mo maximum)",
        )

    try:
        image = await storage.upload(content, upload.filename or "upload")
    except ImageStorageError as e:
        raise storage_failure() from e

    logger.info(f"Image envoyée par {current_user.id}: {image['publicId']}")
    return ImageRef(url=image["url"], public_id=image["publicId"])


@router.post(
    "/base64",
    response_model=ImageRef,
    status_code=status.HTTP_201_CREATED,
    summary="Envoyer une image encodée en base64",
)
async def upload_image_base64(
    payload: Base64Upload,
    current_user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
) -> Any:
    """Accepte une data URI; un base64 brut est traité comme du JPEG."""
    if not payload.base64.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image base64 manquante",
        )

    try:
        image = await storage.upload_base64(payload.base64)
    except ImageStorageError as e:
        raise storage_failure() from e

    return ImageRef(url=image["url"], public_id=image["publicId"])


@router.delete(
    "/{public_id:path}",
    response_model=DestroyResult,
    summary="Supprimer une image",
)
async def delete_image(
    public_id: str,
    current_user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
) -> Any:
    """L'identifiant peut contenir des `/` (dossier Cloudinary)."""
    public_id = public_id.strip()
    if not public_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Identifiant d'image manquant",
        )

    try:
        result = await storage.destroy(public_id)
    except ImageStorageError as e:
        raise storage_failure() from e

    logger.info(f"Image {public_id} supprimée par {current_user.id}: {result}")
    return DestroyResult(result=result)
