"""
Schémas Pydantic partagés.
Les schémas exposés au client utilisent des clés camelCase et des identifiants
sous forme de chaînes (`_id`).
"""

from typing import Any, Iterable, List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ClientModel(BaseModel):
    """Base des schémas échangés avec le client."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ImageIn(ClientModel):
    """Image envoyée par le client; les entrées incomplètes sont ignorées."""
    url: Optional[str] = None
    public_id: Optional[str] = None


class ImageRef(ClientModel):
    """Image hébergée: URL publique et identifiant chez l'hébergeur."""
    url: str
    public_id: str


class SuccessResponse(ClientModel):
    """Réponse générique des opérations sans contenu."""
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Format de toutes les erreurs renvoyées au client."""
    message: str = Field(..., description="Description de l'erreur")


def normalize_images(images: Optional[Iterable[Any]], limit: int) -> List[dict]:
    """
    Garde les images complètes ({url, publicId}) dans la limite donnée.

    Args:
        images: Images reçues (ImageIn, dict ou None)
        limit: Nombre maximum d'images conservées

    Returns:
        Liste de dictionnaires {"url", "publicId"} prête pour le stockage
    """
    if not images:
        return []

    normalized = []
    for item in list(images)[:limit]:
        if isinstance(item, dict):
            url, public_id = item.get("url"), item.get("publicId") or item.get("public_id")
        else:
            url, public_id = getattr(item, "url", None), getattr(item, "public_id", None)
        if url and public_id:
            normalized.append({"url": str(url), "publicId": str(public_id)})
    return normalized


def images_to_client(images: Optional[Iterable[dict]]) -> List[ImageRef]:
    """Convertit les images stockées en schémas ImageRef."""
    return [
        ImageRef(url=img["url"], public_id=img["publicId"])
        for img in (images or [])
        if isinstance(img, dict) and img.get("url") and img.get("publicId")
    ]


def id_str(value: Optional[int]) -> Optional[str]:
    """Identifiant de base exposé sous forme de chaîne."""
    return str(value) if value is not None else None
