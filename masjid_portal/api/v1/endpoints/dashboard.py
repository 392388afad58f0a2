"""
Routes du tableau de bord public: soldes, dernières transactions, comité.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from masjid_portal.config import settings
from masjid_portal.database import get_db
from masjid_portal.schemas.committee import CommitteeMemberResponse
from masjid_portal.schemas.dashboard import DashboardResponse, DashboardStats
from masjid_portal.schemas.transaction import TransactionResponse
from masjid_portal.services import record_service


router = APIRouter()


@router.get(
    "/",
    response_model=DashboardResponse,
    summary="Page d'accueil publique",
)
async def get_dashboard(
    db: Session = Depends(get_db),
) -> Any:
    """
    Soldes des caisses, 5 dernières transactions et membres du comité.
    """
    transactions = record_service.list_recent_transactions(db, limit=5)
    members = record_service.list_committee_members(db)

    return DashboardResponse(
        mosque_name=settings.MOSQUE_NAME,
        stats=record_service.get_dashboard_stats(db),
        recent_transactions=[TransactionResponse.model_validate(t) for t in transactions],
        committee_members=[CommitteeMemberResponse.model_validate(m) for m in members],
    )


@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Soldes des caisses",
)
async def get_stats(
    db: Session = Depends(get_db),
) -> Any:
    """
    Le solde total est la somme des caisses mosquée et imam.
    """
    return record_service.get_dashboard_stats(db)
