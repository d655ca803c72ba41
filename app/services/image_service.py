"""
Service d'hébergement des images (Cloudinary).
Les appels du SDK sont bloquants: ils sont exécutés dans le threadpool.
"""

from typing import Any, Dict, Optional

from cloudinary.exceptions import Error as CloudinaryError
import cloudinary.uploader
from fastapi import HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from app.config import Settings
from app.core.logging import logger


ALLOWED_FORMATS = ("jpg", "jpeg", "png", "webp", "gif")
DEFAULT_DATA_URI_PREFIX = "data:image/jpeg;base64,"


class ImageStorageError(Exception):
    """Échec d'un appel à l'hébergeur d'images."""


class ImageStorage:
    """
    Client de l'hébergeur d'images.

    Les identifiants sont passés à chaque appel plutôt que par la
    configuration globale du SDK.
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "local-deals-togo",
    ):
        self.folder = folder
        self._credentials = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["ImageStorage"]:
        """Retourne None si les identifiants Cloudinary ne sont pas configurés."""
        if not settings.cloudinary_configured:
            logger.warning("Cloudinary non configuré: l'envoi d'images est désactivé")
            return None
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.UPLOAD_FOLDER,
        )

    def _upload(self, data: Any, image_format: Optional[str] = None) -> Dict[str, str]:
        options = dict(self._credentials, folder=self.folder, resource_type="image")
        if image_format:
            options["format"] = image_format
        try:
            result = cloudinary.uploader.upload(data, **options)
        except CloudinaryError as e:
            logger.error(f"Erreur Cloudinary (upload): {e}")
            raise ImageStorageError(str(e)) from e

        url, public_id = result.get("secure_url"), result.get("public_id")
        if not url or not public_id:
            raise ImageStorageError("Réponse Cloudinary incomplète")

        logger.info(f"Image hébergée: {public_id}")
        return {"url": url, "publicId": public_id}

    async def upload(self, content: bytes, filename: str = "upload") -> Dict[str, str]:
        """
        Envoie un fichier image.

        Args:
            content: Contenu binaire du fichier
            filename: Nom d'origine, utilisé pour déduire le format

        Returns:
            {"url", "publicId"}
        """
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        image_format = ext if ext in ALLOWED_FORMATS else None
        return await run_in_threadpool(self._upload, content, image_format)

    async def upload_base64(self, data: str) -> Dict[str, str]:
        """Envoie une image encodée en base64 (data URI ou base64 brut)."""
        data = data.strip()
        if not data.startswith("data:"):
            data = DEFAULT_DATA_URI_PREFIX + data
        return await run_in_threadpool(self._upload, data)

    def _destroy(self, public_id: str) -> str:
        try:
            result = cloudinary.uploader.destroy(
                public_id, resource_type="image", **self._credentials
            )
        except CloudinaryError as e:
            logger.error(f"Erreur Cloudinary (destroy {public_id}): {e}")
            raise ImageStorageError(str(e)) from e
        logger.info(f"Image supprimée: {public_id} ({result.get('result')})")
        return result.get("result", "")

    async def destroy(self, public_id: str) -> str:
        """Supprime une image; retourne le statut Cloudinary ('ok', 'not found')."""
        return await run_in_threadpool(self._destroy, public_id)


def get_image_storage(request: Request) -> ImageStorage:
    """
    Dépendance FastAPI: client d'hébergement d'images de l'application.

    Raises:
        HTTPException: 503 si l'hébergement n'est pas configuré
    """
    storage = getattr(request.app.state, "image_storage", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Hébergement d'images non configuré",
        )
    return storage
