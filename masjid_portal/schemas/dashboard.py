"""
Schémas Pydantic pour le tableau de bord public.
"""

from typing import List
from pydantic import BaseModel

from masjid_portal.schemas.committee import CommitteeMemberResponse
from masjid_portal.schemas.transaction import TransactionResponse


class DashboardStats(BaseModel):
    """Soldes des caisses. Aucune dépense n'est enregistrée: les sorties valent 0."""
    mosque_balance: float = 0
    imam_balance: float = 0
    total_balance: float = 0
    mosque_income: float = 0
    mosque_expense: float = 0
    imam_income: float = 0
    imam_expense: float = 0
    total_transactions: int = 0


class DashboardResponse(BaseModel):
    """Contenu de la page d'accueil."""
    mosque_name: str
    stats: DashboardStats
    recent_transactions: List[TransactionResponse]
    committee_members: List[CommitteeMemberResponse]
