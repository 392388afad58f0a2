"""
Routes pour l'annuaire du comité.
Lecture publique; gestion des membres et de leur photo réservée à l'administrateur.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from masjid_portal.config import settings
from masjid_portal.database import get_db
from masjid_portal.core.exceptions import InvalidImage
from masjid_portal.schemas.committee import (
    CommitteeMemberCreate,
    CommitteeMemberUpdate,
    CommitteeMemberResponse,
    ReconcileReport,
)
from masjid_portal.api.deps import get_storage, require_admin
from masjid_portal.services import media_service, record_service
from masjid_portal.services.auth_service import AuthSession
from masjid_portal.services.media_service import ImageUpload
from masjid_portal.services.storage import StorageBackend


router = APIRouter()


async def _read_image(upload: Optional[UploadFile]) -> Optional[ImageUpload]:
    """Convertit le fichier du formulaire; un champ vide signifie pas de photo."""
    if upload is None or not upload.filename:
        return None

    # Refuser avant lecture complète quand la taille est connue
    if upload.size is not None and upload.size > settings.MAX_IMAGE_SIZE:
        max_mb = settings.MAX_IMAGE_SIZE // (1024 * 1024)
        raise InvalidImage(f"La photo doit faire moins de {max_mb} Mo")

    data = await upload.read()
    return ImageUpload(
        filename=upload.filename,
        content_type=upload.content_type or "",
        data=data,
    )


def _build(schema, **values):
    try:
        return schema(**values)
    except SchemaValidationError as e:
        raise RequestValidationError(e.errors()) from e


@router.get(
    "/",
    response_model=List[CommitteeMemberResponse],
    summary="Membres actifs du comité",
)
async def list_members(
    db: Session = Depends(get_db),
) -> Any:
    return record_service.list_committee_members(db)


@router.get(
    "/all",
    response_model=List[CommitteeMemberResponse],
    summary="Tous les membres du comité, inactifs compris",
)
async def list_all_members(
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_admin),
) -> Any:
    """
    Liste de gestion: les membres désactivés restent retrouvables pour
    être réactivés ou supprimés.
    """
    return record_service.list_committee_members(db, include_inactive=True)


@router.post(
    "/",
    response_model=CommitteeMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ajouter un membre du comité",
)
async def create_member(
    name: str = Form(...),
    designation: str = Form(...),
    phone: Optional[str] = Form(None),
    is_active: bool = Form(True),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    session: AuthSession = Depends(require_admin),
) -> Any:
    """
    Ajoute un membre (formulaire multipart), avec une photo optionnelle
    (image de 5 Mo maximum).
    """
    member_data = _build(
        CommitteeMemberCreate,
        name=name,
        designation=designation,
        phone=phone,
        is_active=is_active,
    )
    upload = await _read_image(image)
    return await media_service.create_member_with_image(db, storage, member_data, upload)


@router.get(
    "/{member_id}",
    response_model=CommitteeMemberResponse,
    summary="Détails d'un membre",
)
async def get_member(
    member_id: int,
    db: Session = Depends(get_db),
) -> Any:
    return record_service.get_committee_member(db, member_id)


@router.put(
    "/{member_id}",
    response_model=CommitteeMemberResponse,
    summary="Modifier un membre du comité",
)
async def update_member(
    member_id: int,
    name: Optional[str] = Form(None),
    designation: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    session: AuthSession = Depends(require_admin),
) -> Any:
    """
    Modifie les champs fournis et remplace la photo si un fichier est envoyé.
    """
    values = {
        field: value
        for field, value in {
            "name": name,
            "designation": designation,
            "phone": phone,
            "is_active": is_active,
        }.items()
        if value is not None
    }
    member_data = _build(CommitteeMemberUpdate, **values)
    upload = await _read_image(image)
    return await media_service.update_member(db, storage, member_id, member_data, upload)


@router.put(
    "/{member_id}/image",
    response_model=CommitteeMemberResponse,
    summary="Remplacer la photo d'un membre",
)
async def replace_member_image(
    member_id: int,
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    session: AuthSession = Depends(require_admin),
) -> Any:
    upload = await _read_image(image)
    if upload is None:
        raise InvalidImage("Veuillez choisir un fichier image (JPEG, PNG, etc.)")
    return await media_service.update_member_image(db, storage, member_id, upload)


@router.delete(
    "/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer un membre du comité",
)
async def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    session: AuthSession = Depends(require_admin),
) -> Response:
    """
    Supprime le membre; la suppression de sa photo est best-effort.
    """
    await media_service.delete_member(db, storage, member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/reconcile",
    response_model=ReconcileReport,
    summary="Renommer les photos restées temporaires",
)
async def reconcile_media(
    db: Session = Depends(get_db),
    storage: StorageBackend = Depends(get_storage),
    session: AuthSession = Depends(require_admin),
) -> Any:
    """
    Relance le renommage des photos dont la clé est encore temporaire.
    """
    return await media_service.sweep_pending_media(db, storage)
