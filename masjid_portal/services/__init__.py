"""
Module des services métier du portail.
"""

from .storage import StorageBackend, get_storage_backend
from . import auth_service, record_service, media_service

__all__ = [
    "StorageBackend",
    "get_storage_backend",
    "auth_service",
    "media_service",
    "record_service",
]
