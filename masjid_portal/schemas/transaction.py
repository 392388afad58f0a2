"""
Schémas Pydantic pour les transactions de caisse.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from masjid_portal.models.transaction import Fund


def _clean_purpose(v: str) -> str:
    cleaned = v.strip()
    if not cleaned:
        raise ValueError("Le motif est obligatoire")
    return cleaned


class TransactionBase(BaseModel):
    """Schéma de base pour une transaction."""
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Montant")
    purpose: str = Field(..., max_length=500, description="Motif")
    fund: Fund = Field(default=Fund.MOSQUE, description="Caisse créditée")
    transaction_date: date = Field(..., description="Date de l'opération")

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: str) -> str:
        return _clean_purpose(v)


class TransactionCreate(TransactionBase):
    """Schéma pour saisir une transaction."""


class TransactionUpdate(BaseModel):
    """Schéma pour modifier une transaction."""
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    purpose: Optional[str] = Field(None, max_length=500)
    fund: Optional[Fund] = None
    transaction_date: Optional[date] = None

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_purpose(v)


class TransactionResponse(BaseModel):
    """Schéma de réponse pour une transaction."""
    id: int
    amount: Decimal
    purpose: str
    fund: Fund
    transaction_date: date
    created_at: datetime
    created_by: Optional[int]
    created_by_name: str = "Unknown"

    class Config:
        from_attributes = True
