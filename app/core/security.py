"""
Sécurité: mots de passe (bcrypt) et tokens d'accès JWT.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from app.config import settings
from app.core.logging import logger

# bcrypt ignore tout au-delà de 72 octets (et les versions récentes refusent)
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash bcrypt d'un mot de passe, prêt à être stocké."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def check_password(password: str, hashed_password: Optional[str]) -> bool:
    """
    Compare un mot de passe en clair au hash stocké.

    Un hash absent ou illisible est traité comme un échec.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed_password.encode("utf-8"))
    except ValueError as e:
        logger.error(f"Hash de mot de passe invalide: {e}")
        return False


def issue_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Émet le token d'accès d'un utilisateur.

    Args:
        user_id: Identifiant de l'utilisateur (claim `sub`)
        role: acheteur, vendeur ou admin
        expires_delta: Durée de validité (défaut: ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Token JWT signé
    """
    issued_at = datetime.utcnow()
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(user_id),
        "role": role,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, verify_exp: bool = True) -> Optional[Dict[str, Any]]:
    """Claims d'un token signé par l'application, None s'il est invalide."""
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except JWTError as e:
        if verify_exp:
            logger.warning(f"Token rejeté: {e}")
        return None


def token_user_id(token: str) -> Optional[int]:
    """Identifiant utilisateur porté par un token valide."""
    claims = decode_token(token)
    if claims is None:
        return None

    subject = str(claims.get("sub", ""))
    if not subject.isdigit():
        logger.warning("Token sans identifiant utilisateur")
        return None
    return int(subject)
