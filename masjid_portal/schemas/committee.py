"""
Schémas Pydantic pour les membres du comité.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator
import re

from masjid_portal.models.committee import ImageState


def _required(v: str, label: str) -> str:
    cleaned = v.strip()
    if not cleaned:
        raise ValueError(f"{label} est obligatoire")
    return cleaned


def _clean_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    cleaned = re.sub(r"[\s\-]", "", v)
    if not cleaned:
        return None
    if not re.match(r"^\+?[0-9]{6,15}$", cleaned):
        raise ValueError("Format de téléphone invalide")
    return cleaned


class CommitteeMemberCreate(BaseModel):
    """Schéma pour ajouter un membre du comité."""
    name: str = Field(..., max_length=100, description="Nom")
    designation: str = Field(..., max_length=100, description="Fonction")
    phone: Optional[str] = Field(None, max_length=20)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required(v, "Le nom")

    @field_validator("designation")
    @classmethod
    def validate_designation(cls, v: str) -> str:
        return _required(v, "La fonction")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)


class CommitteeMemberUpdate(BaseModel):
    """Schéma pour modifier un membre du comité."""
    name: Optional[str] = Field(None, max_length=100)
    designation: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required(v, "Le nom")

    @field_validator("designation")
    @classmethod
    def validate_designation(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _required(v, "La fonction")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return _clean_phone(v)


class CommitteeMemberResponse(BaseModel):
    """Schéma de réponse pour un membre du comité."""
    id: int
    name: str
    designation: str
    phone: Optional[str] = None
    is_active: bool
    image_url: Optional[str] = None
    image_state: Optional[ImageState] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReconcileReport(BaseModel):
    """Résultat d'un passage de réconciliation des photos."""
    pending: int = Field(description="Membres trouvés avec une photo temporaire")
    committed: int = Field(description="Photos renommées avec succès")
    failed: int = Field(description="Photos restées temporaires")
