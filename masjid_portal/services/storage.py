"""
Service de stockage objet pour les photos du comité.
Un seul bucket; implémentations Supabase Storage (HTTP) et dossier local.
"""

from abc import ABC, abstractmethod
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
import shutil

import httpx

from masjid_portal.config import settings
from masjid_portal.core.exceptions import BackendUnavailable, StorageError
from masjid_portal.core.logging import logger


def key_from_url(url: str) -> str:
    """Retourne la clé d'un fichier à partir de son URL publique (dernier segment)."""
    return url.rstrip("/").split("/")[-1].split("?")[0]


class StorageBackend(ABC):
    """Interface abstraite pour le stockage objet."""

    bucket: str

    @abstractmethod
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Dépose un fichier et retourne son URL publique."""
        pass

    @abstractmethod
    async def copy(self, source_key: str, destination_key: str) -> None:
        """Copie un fichier sous une nouvelle clé."""
        pass

    @abstractmethod
    async def remove(self, keys: List[str]) -> None:
        """Supprime des fichiers."""
        pass

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        """URL publique d'un fichier (sans appel réseau)."""
        pass


class SupabaseStorageBackend(StorageBackend):
    """
    Implémentation pour Supabase Storage.
    Documentation: https://supabase.com/docs/reference/api/storage
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL or "").rstrip("/")
        self.service_key = service_key or settings.SUPABASE_SERVICE_KEY
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.timeout = timeout or settings.STORAGE_TIMEOUT_SECONDS
        self.transport = transport

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key or "",
        }

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Exécute un appel à l'API Storage et convertit les échecs en erreurs métier."""
        url = f"{self.base_url}/storage/v1{path}"
        headers = {**self._headers(), **kwargs.pop("headers", {})}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Délai dépassé sur le stockage ({method} {path}): {e}")
            raise BackendUnavailable("Le stockage des photos ne répond pas") from e
        except httpx.TransportError as e:
            logger.error(f"Stockage injoignable ({method} {path}): {e}")
            raise BackendUnavailable("Le stockage des photos est injoignable") from e

        if response.status_code >= 400:
            logger.error(f"Erreur Storage {response.status_code} ({method} {path}): {response.text}")
            raise StorageError(
                f"Erreur du stockage ({response.status_code})",
                status_code=response.status_code,
            )
        return response

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        await self._request(
            "POST",
            f"/object/{self.bucket}/{key}",
            content=data,
            headers={
                "Content-Type": content_type,
                "cache-control": "max-age=3600",
                "x-upsert": "false",
            },
        )
        return self.get_public_url(key)

    async def copy(self, source_key: str, destination_key: str) -> None:
        await self._request(
            "POST",
            "/object/copy",
            json={
                "bucketId": self.bucket,
                "sourceKey": source_key,
                "destinationKey": destination_key,
            },
        )

    async def remove(self, keys: List[str]) -> None:
        if not keys:
            return
        await self._request(
            "DELETE",
            f"/object/{self.bucket}",
            json={"prefixes": keys},
        )

    def get_public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"


class LocalStorageBackend(StorageBackend):
    """
    Stockage dans un dossier local, servi par l'application sous MEDIA_URL_PREFIX.
    Utilisé en développement.
    """

    def __init__(
        self,
        base_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
        bucket: Optional[str] = None,
    ):
        self.bucket = bucket or settings.STORAGE_BUCKET
        self.root = Path(base_dir or settings.LOCAL_MEDIA_DIR) / self.bucket
        self.url_prefix = (url_prefix or settings.MEDIA_URL_PREFIX).rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Clé de fichier invalide: {key!r}")
        return self.root / key

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        if path.exists():
            raise StorageError(f"Le fichier existe déjà: {key}", status_code=409)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Écriture impossible de {key}: {e}") from e
        return self.get_public_url(key)

    async def copy(self, source_key: str, destination_key: str) -> None:
        source = self._path(source_key)
        if not source.exists():
            raise StorageError(f"Fichier introuvable: {source_key}", status_code=404)
        try:
            shutil.copyfile(source, self._path(destination_key))
        except OSError as e:
            raise StorageError(f"Copie impossible de {source_key}: {e}") from e

    async def remove(self, keys: List[str]) -> None:
        for key in keys:
            try:
                self._path(key).unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(f"Suppression impossible de {key}: {e}") from e

    def get_public_url(self, key: str) -> str:
        return f"{self.url_prefix}/{self.bucket}/{key}"


@lru_cache()
def get_storage_backend() -> StorageBackend:
    """Retourne le backend de stockage configuré (instance unique)."""
    if settings.STORAGE_BACKEND == "local":
        logger.info(f"Stockage local des photos: {settings.LOCAL_MEDIA_DIR}")
        return LocalStorageBackend()

    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        logger.warning("SUPABASE_URL ou SUPABASE_SERVICE_KEY non configuré")
    return SupabaseStorageBackend()


__all__ = [
    "StorageBackend",
    "SupabaseStorageBackend",
    "LocalStorageBackend",
    "get_storage_backend",
    "key_from_url",
]
