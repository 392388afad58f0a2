"""
Schémas Pydantic pour l'authentification par code PIN.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator
import re

from masjid_portal.models.user import UserRole


class LoginRequest(BaseModel):
    """Schéma pour la connexion par PIN."""
    pin: str = Field(..., description="Code PIN à 4 chiffres")
    role: UserRole = Field(..., description="Espace demandé (admin ou cashier)")

    @field_validator("pin")
    @classmethod
    def validate_pin(cls, v: str) -> str:
        """Le PIN est comparé après suppression des espaces."""
        cleaned = v.strip()
        if not re.match(r"^[0-9]{4}$", cleaned):
            raise ValueError("Le PIN doit contenir exactement 4 chiffres")
        return cleaned


class SessionResponse(BaseModel):
    """Identité conservée dans la session du navigateur."""
    user_id: str
    role: UserRole
    name: str


class LoginResponse(BaseModel):
    """Réponse d'une connexion réussie."""
    session: SessionResponse
    access_token: str
    token_type: str = "bearer"
    redirect_to: str = Field(description="Page d'accueil de l'espace du rôle")


class SessionStatus(BaseModel):
    """État de la session courante."""
    authenticated: bool
    session: Optional[SessionResponse] = None
