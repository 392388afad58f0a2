"""
Module core - Fonctionnalités centrales de l'application.
Contient la sécurité, le logging, la session et les exceptions métier.
"""

from .security import (
    verify_pin,
    get_pin_hash,
    create_session_token,
    decode_session_token,
)
from .logging import setup_logging, logger

__all__ = [
    "verify_pin",
    "get_pin_hash",
    "create_session_token",
    "decode_session_token",
    "setup_logging",
    "logger",
]
