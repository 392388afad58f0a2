"""
Routeur principal de l'API v1.
Regroupe toutes les routes des différents modules.
"""

from fastapi import APIRouter

from masjid_portal.api.v1.endpoints import (
    auth,
    transactions,
    committee,
    dashboard,
)

api_router = APIRouter()

# Routes d'authentification
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentification"],
)

# Routes du tableau de bord public
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Tableau de bord"],
)

# Routes des transactions
api_router.include_router(
    transactions.router,
    prefix="/transactions",
    tags=["Transactions"],
)

# Routes du comité
api_router.include_router(
    committee.router,
    prefix="/committee",
    tags=["Comité"],
)
