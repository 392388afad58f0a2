"""
Module de sécurité du portail.
Hashage des codes PIN et signature du jeton de session.
"""

from datetime import datetime, timedelta
from typing import Any, Optional, Dict

import bcrypt
from jose import JWTError, jwt

from masjid_portal.config import settings
from masjid_portal.core.logging import logger


def verify_pin(plain_pin: str, pin_hash: str) -> bool:
    """
    Vérifie si un code PIN en clair correspond au hash stocké.

    Args:
        plain_pin: PIN saisi (déjà nettoyé des espaces)
        pin_hash: Hash bcrypt stocké en base

    Returns:
        True si le PIN est correct, False sinon
    """
    try:
        return bcrypt.checkpw(
            plain_pin.encode('utf-8'),
            pin_hash.encode('utf-8')
        )
    except ValueError as e:
        logger.error(f"Hash de PIN illisible: {e}")
        return False


def get_pin_hash(pin: str) -> str:
    """
    Hash un code PIN pour le stockage.

    Args:
        pin: PIN en clair

    Returns:
        Hash bcrypt du PIN
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pin.strip().encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_session_token(
    fields: Dict[str, str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Signe le contenu de la session pour qu'il soit conservé par le navigateur.

    Args:
        fields: Clés de session (user_id, user_role, user_name)
        expires_delta: Durée de validité; par défaut SESSION_EXPIRE_MINUTES,
            sans expiration si ce paramètre n'est pas défini

    Returns:
        Jeton JWT encodé
    """
    to_encode: Dict[str, Any] = dict(fields)
    to_encode["iat"] = datetime.utcnow()
    to_encode["type"] = "session"

    if expires_delta is None and settings.SESSION_EXPIRE_MINUTES:
        expires_delta = timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    if expires_delta is not None:
        to_encode["exp"] = datetime.utcnow() + expires_delta

    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

    logger.debug(f"Jeton de session créé pour l'utilisateur {fields.get('user_id')}")
    return encoded_jwt


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Vérifie et décode un jeton de session.

    Args:
        token: Jeton JWT à vérifier

    Returns:
        Contenu du jeton si valide, None sinon
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError as e:
        logger.warning(f"Jeton de session rejeté: {e}")
        return None

    if payload.get("type") != "session":
        logger.warning(f"Type de jeton invalide: {payload.get('type')}")
        return None

    return payload


__all__ = [
    "verify_pin",
    "get_pin_hash",
    "create_session_token",
    "decode_session_token",
]
