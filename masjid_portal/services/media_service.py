"""
Service de gestion des photos du comité.

Garde la photo d'un membre et son champ `image_url` cohérents pendant
l'ajout, la modification et la suppression du membre.

L'ID définitif du membre n'est connu qu'après l'insertion: la photo est
d'abord déposée sous une clé temporaire (état `pending`), puis copiée sous
une clé `<id>-<horodatage>.<ext>` (état `committed`). Si ce renommage
échoue, le membre garde l'URL temporaire, qui reste valide, et pourra être
réconcilié plus tard par `sweep_pending_media`.

Règle d'échec:
    - les suppressions de nettoyage sont best-effort: l'erreur est
      journalisée (CleanupError) et n'interrompt jamais l'opération;
    - le dépôt initial et l'écriture en base sont sur le chemin critique:
      leurs erreurs remontent à l'appelant.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import mimetypes
import time

from sqlalchemy.orm import Session

from masjid_portal.config import settings
from masjid_portal.core.exceptions import BackendError, CleanupError, InvalidImage
from masjid_portal.core.logging import logger, log_media_event
from masjid_portal.models.committee import CommitteeMember, ImageState
from masjid_portal.schemas.committee import (
    CommitteeMemberCreate,
    CommitteeMemberUpdate,
    ReconcileReport,
)
from masjid_portal.services import record_service
from masjid_portal.services.storage import StorageBackend, key_from_url


TEMP_KEY_PREFIX = "temp-"


@dataclass(frozen=True)
class ImageUpload:
    """Fichier photo reçu d'un formulaire."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_image(image: ImageUpload) -> None:
    """
    Vérifie le type MIME et la taille de la photo, sans aucun appel réseau.

    Raises:
        InvalidImage: fichier non image, vide ou trop volumineux
    """
    if not (image.content_type or "").startswith("image/"):
        raise InvalidImage("Veuillez choisir un fichier image (JPEG, PNG, etc.)")
    if image.size == 0:
        raise InvalidImage("Le fichier image est vide")
    if image.size > settings.MAX_IMAGE_SIZE:
        max_mb = settings.MAX_IMAGE_SIZE // (1024 * 1024)
        raise InvalidImage(f"La photo doit faire moins de {max_mb} Mo")


def file_extension(image: ImageUpload) -> str:
    """Extension du fichier d'origine, ou déduite du type MIME."""
    name = image.filename or ""
    if "." in name:
        ext = name.rsplit(".", 1)[-1].strip().lower()
        if ext:
            return ext
    guessed = mimetypes.guess_extension(image.content_type or "")
    return guessed.lstrip(".") if guessed else "bin"


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def build_image_key(owner: str, ext: str, timestamp: Optional[int] = None) -> str:
    """Clé `<propriétaire>-<horodatage ms>.<ext>`."""
    return f"{owner}-{timestamp if timestamp is not None else _timestamp_ms()}.{ext}"


def temporary_owner(timestamp: Optional[int] = None) -> str:
    return f"{TEMP_KEY_PREFIX}{timestamp if timestamp is not None else _timestamp_ms()}"


def is_temporary_key(key: str) -> bool:
    return key.startswith(TEMP_KEY_PREFIX)


def _extension_of_key(key: str) -> str:
    return key.rsplit(".", 1)[-1] if "." in key else "bin"


def _current_key(member: CommitteeMember) -> Optional[str]:
    if member.image_key:
        return member.image_key
    if member.image_url:
        return key_from_url(member.image_url)
    return None


async def _remove_quietly(
    storage: StorageBackend,
    keys: List[str],
    member_id: Optional[int] = None,
) -> Optional[CleanupError]:
    """
    Suppression best-effort. Retourne l'erreur de nettoyage au lieu de la lever.
    """
    try:
        await storage.remove(keys)
    except BackendError as e:
        error = CleanupError(keys, e)
        log_media_event("remove", ",".join(keys), success=False, member_id=member_id, details=str(e))
        logger.warning(f"Nettoyage ignoré: {error}")
        return error

    log_media_event("remove", ",".join(keys), success=True, member_id=member_id)
    return None


async def create_member_with_image(
    db: Session,
    storage: StorageBackend,
    data: CommitteeMemberCreate,
    image: Optional[ImageUpload] = None,
) -> CommitteeMember:
    """
    Ajoute un membre du comité, avec sa photo si elle est fournie.

    1. Sans photo: insertion directe.
    2. Avec photo: validation puis dépôt sous une clé temporaire.
    3. Insertion avec l'URL temporaire; en cas d'échec la photo temporaire
       est supprimée (best-effort) et l'erreur remonte.
    4. Renommage sous la clé définitive; en cas d'échec le membre garde
       l'URL temporaire et reste `pending`.

    Raises:
        InvalidImage: photo refusée (aucun appel réseau n'a eu lieu)
        BackendError: échec du dépôt ou de l'insertion
    """
    fields: Dict[str, Any] = data.model_dump()

    if image is None:
        return record_service.insert_committee_member(
            db,
            {**fields, "image_url": None, "image_key": None, "image_state": None},
        )

    validate_image(image)

    timestamp = _timestamp_ms()
    temp_key = build_image_key(temporary_owner(timestamp), file_extension(image), timestamp)
    temp_url = await storage.upload(temp_key, image.data, image.content_type)
    log_media_event("upload", temp_key, success=True)

    try:
        member = record_service.insert_committee_member(
            db,
            {
                **fields,
                "image_url": temp_url,
                "image_key": temp_key,
                "image_state": ImageState.PENDING.value,
            },
        )
    except BackendError:
        logger.error(f"Insertion du membre échouée, suppression de la photo temporaire {temp_key}")
        await _remove_quietly(storage, [temp_key])
        raise

    await reconcile_member_image(db, storage, member)
    return member


async def reconcile_member_image(
    db: Session,
    storage: StorageBackend,
    member: CommitteeMember,
) -> bool:
    """
    Renomme la photo temporaire d'un membre avec son ID définitif.

    Idempotent: sans effet pour un membre sans photo ou déjà `committed`.
    En cas d'échec le membre garde sa photo temporaire et l'erreur est
    seulement journalisée.

    Returns:
        True si le membre a une photo définitive à l'issue de l'appel
    """
    if not member.image_pending or not member.image_key:
        return member.image_state == ImageState.COMMITTED.value

    temp_key = member.image_key
    permanent_key = build_image_key(str(member.id), _extension_of_key(temp_key))

    try:
        await storage.copy(temp_key, permanent_key)
    except BackendError as e:
        log_media_event("copy", temp_key, success=False, member_id=member.id, details=str(e))
        logger.error(f"Renommage de la photo du membre {member.id} impossible, URL temporaire conservée")
        return False

    try:
        record_service.update_committee_member(
            db,
            member,
            {
                "image_url": storage.get_public_url(permanent_key),
                "image_key": permanent_key,
                "image_state": ImageState.COMMITTED.value,
            },
        )
    except BackendError as e:
        logger.error(f"Lien vers la photo définitive du membre {member.id} impossible: {e}")
        await _remove_quietly(storage, [permanent_key], member.id)
        return False

    log_media_event("copy", permanent_key, success=True, member_id=member.id)
    await _remove_quietly(storage, [temp_key], member.id)
    return True


async def sweep_pending_media(db: Session, storage: StorageBackend) -> ReconcileReport:
    """Réconcilie tous les membres dont la photo est encore temporaire."""
    members = record_service.list_pending_image_members(db)
    committed = 0
    for member in members:
        if await reconcile_member_image(db, storage, member):
            committed += 1

    report = ReconcileReport(
        pending=len(members),
        committed=committed,
        failed=len(members) - committed,
    )
    logger.info(
        f"Réconciliation des photos: {report.committed}/{report.pending} renommées, "
        f"{report.failed} en attente"
    )
    return report


async def _replace_image(
    db: Session,
    storage: StorageBackend,
    member: CommitteeMember,
    image: ImageUpload,
    fields: Optional[Dict[str, Any]] = None,
) -> CommitteeMember:
    """
    Dépose la nouvelle photo puis écrit, en une seule mise à jour, les
    champs modifiés et la nouvelle photo. Un dépôt raté ne touche pas au
    membre.
    """
    old_key = _current_key(member)
    new_key = build_image_key(str(member.id), file_extension(image))

    new_url = await storage.upload(new_key, image.data, image.content_type)
    log_media_event("upload", new_key, success=True, member_id=member.id)

    try:
        record_service.update_committee_member(
            db,
            member,
            {
                **(fields or {}),
                "image_url": new_url,
                "image_key": new_key,
                "image_state": ImageState.COMMITTED.value,
            },
        )
    except BackendError:
        await _remove_quietly(storage, [new_key], member.id)
        raise

    # L'ancienne photo n'est supprimée qu'une fois la nouvelle rattachée
    if old_key and old_key != new_key:
        await _remove_quietly(storage, [old_key], member.id)

    return member


async def update_member_image(
    db: Session,
    storage: StorageBackend,
    member_id: int,
    image: ImageUpload,
) -> CommitteeMember:
    """
    Remplace la photo d'un membre existant.

    Ordre: dépôt de la nouvelle photo, mise à jour du membre, puis
    suppression best-effort de l'ancienne. Un dépôt raté ne laisse jamais
    le membre sans photo.
    """
    validate_image(image)
    member = record_service.get_committee_member(db, member_id)
    return await _replace_image(db, storage, member, image)


async def update_member(
    db: Session,
    storage: StorageBackend,
    member_id: int,
    data: CommitteeMemberUpdate,
    image: Optional[ImageUpload] = None,
) -> CommitteeMember:
    """
    Modifie les informations d'un membre et, si fournie, sa photo.

    Avec une photo, rien n'est écrit en base avant le dépôt: un échec du
    stockage laisse le membre inchangé.
    """
    if image is not None:
        validate_image(image)

    member = record_service.get_committee_member(db, member_id)

    fields = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field == "phone"
    }

    if image is not None:
        return await _replace_image(db, storage, member, image, fields)

    if fields:
        member = record_service.update_committee_member(db, member, fields)
    return member


async def delete_member(
    db: Session,
    storage: StorageBackend,
    member_id: int,
    image_url: Optional[str] = None,
) -> None:
    """
    Supprime la photo (best-effort) puis le membre.
    La suppression du membre a lieu même si celle de la photo échoue.
    """
    member = record_service.get_committee_member(db, member_id)

    key = key_from_url(image_url) if image_url else _current_key(member)
    if key:
        await _remove_quietly(storage, [key], member.id)

    record_service.delete_committee_member(db, member)


__all__ = [
    "ImageUpload",
    "validate_image",
    "file_extension",
    "build_image_key",
    "temporary_owner",
    "is_temporary_key",
    "create_member_with_image",
    "reconcile_member_image",
    "sweep_pending_media",
    "update_member_image",
    "update_member",
    "delete_member",
]
