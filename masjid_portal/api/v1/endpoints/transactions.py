"""
Routes pour les transactions de caisse.
Lecture publique; saisie, modification et suppression réservées au caissier.
"""

from typing import Any, List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from masjid_portal.database import get_db
from masjid_portal.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
)
from masjid_portal.api.deps import require_cashier
from masjid_portal.services import record_service
from masjid_portal.services.auth_service import AuthSession


router = APIRouter()


@router.get(
    "/",
    response_model=List[TransactionResponse],
    summary="Dernières transactions",
)
async def list_transactions(
    limit: int = Query(10, ge=1, le=1000, description="Nombre de transactions"),
    db: Session = Depends(get_db),
) -> Any:
    """
    Liste les transactions les plus récentes avec le nom du caissier.
    """
    return record_service.list_recent_transactions(db, limit=limit)


@router.post(
    "/",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Saisir une transaction",
)
async def create_transaction(
    transaction_data: TransactionCreate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_cashier),
) -> Any:
    """
    Enregistre une entrée d'argent dans la caisse de la mosquée ou de l'imam.

    - **amount**: montant strictement positif
    - **purpose**: motif
    - **fund**: `mosque` ou `imam`
    - **transaction_date**: date de l'opération
    """
    return record_service.add_transaction(db, session, transaction_data)


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Détails d'une transaction",
)
async def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
) -> Any:
    return record_service.get_transaction(db, transaction_id)


@router.put(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Modifier une transaction",
)
async def update_transaction(
    transaction_id: int,
    transaction_data: TransactionUpdate,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_cashier),
) -> Any:
    return record_service.update_transaction(db, session, transaction_id, transaction_data)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer une transaction",
)
async def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
    session: AuthSession = Depends(require_cashier),
) -> Response:
    record_service.delete_transaction(db, session, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
