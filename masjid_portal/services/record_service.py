"""
Service d'accès aux enregistrements: transactions de caisse et membres du comité.

Les écritures exigent une session explicite (identité visible dans la
signature). Les erreurs de base sur le chemin critique remontent à
l'appelant sous forme de BackendError.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from masjid_portal.core.exceptions import NotAuthenticated, NotFound
from masjid_portal.core.logging import logger, log_transaction_event
from masjid_portal.database import backend_call
from masjid_portal.models.committee import CommitteeMember
from masjid_portal.models.transaction import Fund, Transaction
from masjid_portal.schemas.dashboard import DashboardStats
from masjid_portal.schemas.transaction import TransactionCreate, TransactionUpdate
from masjid_portal.services.auth_service import AuthSession


def _require_session(session: Optional[AuthSession]) -> AuthSession:
    if session is None:
        raise NotAuthenticated("Session requise")
    return session


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

def add_transaction(
    db: Session,
    session: Optional[AuthSession],
    data: TransactionCreate,
) -> Transaction:
    """Enregistre une transaction au nom du caissier connecté."""
    session = _require_session(session)

    transaction = Transaction(
        amount=data.amount,
        purpose=data.purpose,
        fund=Fund(data.fund).value,
        transaction_date=data.transaction_date,
        created_by=int(session.user_id),
    )

    with backend_call(db, "ajout de la transaction"):
        db.add(transaction)
        db.commit()
        db.refresh(transaction)

    log_transaction_event(
        event_type="creation",
        transaction_id=transaction.id,
        amount=float(transaction.amount),
        fund=transaction.fund,
        user_id=session.user_id,
    )
    return transaction


def get_transaction(db: Session, transaction_id: int) -> Transaction:
    with backend_call(db, "lecture de la transaction"):
        transaction = db.query(Transaction).filter(Transaction.id == transaction_id).first()

    if not transaction:
        raise NotFound("Transaction non trouvée")
    return transaction


def update_transaction(
    db: Session,
    session: Optional[AuthSession],
    transaction_id: int,
    data: TransactionUpdate,
) -> Transaction:
    """Modifie le montant, le motif, la caisse ou la date d'une transaction."""
    session = _require_session(session)
    transaction = get_transaction(db, transaction_id)

    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if "fund" in updates:
        updates["fund"] = Fund(updates["fund"]).value

    with backend_call(db, "modification de la transaction"):
        for field, value in updates.items():
            setattr(transaction, field, value)
        db.commit()
        db.refresh(transaction)

    log_transaction_event(
        event_type="modification",
        transaction_id=transaction.id,
        amount=float(transaction.amount),
        fund=transaction.fund,
        user_id=session.user_id,
    )
    return transaction


def delete_transaction(
    db: Session,
    session: Optional[AuthSession],
    transaction_id: int,
) -> None:
    session = _require_session(session)
    transaction = get_transaction(db, transaction_id)
    amount, fund = float(transaction.amount), transaction.fund

    with backend_call(db, "suppression de la transaction"):
        db.delete(transaction)
        db.commit()

    log_transaction_event(
        event_type="suppression",
        transaction_id=transaction_id,
        amount=amount,
        fund=fund,
        user_id=session.user_id,
    )


def list_recent_transactions(db: Session, limit: int = 10) -> List[Transaction]:
    """
    Dernières transactions, les plus récentes d'abord
    (date d'opération puis date de saisie).
    """
    with backend_call(db, "liste des transactions"):
        return (
            db.query(Transaction)
            .order_by(Transaction.transaction_date.desc(), Transaction.created_at.desc())
            .limit(limit)
            .all()
        )


def get_fund_balance(db: Session, fund: Fund) -> Decimal:
    """Solde d'une caisse: somme de toutes ses transactions."""
    with backend_call(db, f"solde de la caisse {Fund(fund).value}"):
        total = (
            db.query(func.coalesce(func.sum(Transaction.amount), 0))
            .filter(Transaction.fund == Fund(fund).value)
            .scalar()
        )
    return Decimal(str(total or 0))


def get_dashboard_stats(db: Session) -> DashboardStats:
    mosque_balance = get_fund_balance(db, Fund.MOSQUE)
    imam_balance = get_fund_balance(db, Fund.IMAM)

    with backend_call(db, "comptage des transactions"):
        total_transactions = db.query(func.count(Transaction.id)).scalar() or 0

    return DashboardStats(
        mosque_balance=float(mosque_balance),
        imam_balance=float(imam_balance),
        total_balance=float(mosque_balance + imam_balance),
        mosque_income=float(mosque_balance),
        mosque_expense=0,
        imam_income=float(imam_balance),
        imam_expense=0,
        total_transactions=total_transactions,
    )


# ---------------------------------------------------------------------------
# Membres du comité
# ---------------------------------------------------------------------------

def list_committee_members(db: Session, include_inactive: bool = False) -> List[CommitteeMember]:
    """Membres du comité dans l'ordre d'ajout."""
    with backend_call(db, "liste du comité"):
        query = db.query(CommitteeMember)
        if not include_inactive:
            query = query.filter(CommitteeMember.is_active == True)  # noqa: E712
        return query.order_by(CommitteeMember.created_at.asc(), CommitteeMember.id.asc()).all()


def list_pending_image_members(db: Session) -> List[CommitteeMember]:
    with backend_call(db, "recherche des photos temporaires"):
        return (
            db.query(CommitteeMember)
            .filter(CommitteeMember.image_state == "pending")
            .order_by(CommitteeMember.id)
            .all()
        )


def get_committee_member(db: Session, member_id: int) -> CommitteeMember:
    with backend_call(db, "lecture du membre"):
        member = db.query(CommitteeMember).filter(CommitteeMember.id == member_id).first()

    if not member:
        raise NotFound("Membre du comité non trouvé")
    return member


def insert_committee_member(db: Session, fields: Dict[str, Any]) -> CommitteeMember:
    member = CommitteeMember(**fields)
    with backend_call(db, "ajout du membre"):
        db.add(member)
        db.commit()
        db.refresh(member)

    logger.info(f"Membre du comité ajouté: {member.name} (ID: {member.id})")
    return member


def update_committee_member(
    db: Session,
    member: CommitteeMember,
    fields: Dict[str, Any],
) -> CommitteeMember:
    with backend_call(db, "modification du membre"):
        for field, value in fields.items():
            setattr(member, field, value)
        db.commit()
        db.refresh(member)
    return member


def delete_committee_member(db: Session, member: CommitteeMember) -> None:
    member_id = member.id
    with backend_call(db, "suppression du membre"):
        db.delete(member)
        db.commit()

    logger.info(f"Membre du comité supprimé: ID {member_id}")


__all__ = [
    "add_transaction",
    "get_transaction",
    "update_transaction",
    "delete_transaction",
    "list_recent_transactions",
    "get_fund_balance",
    "get_dashboard_stats",
    "list_committee_members",
    "list_pending_image_members",
    "get_committee_member",
    "insert_committee_member",
    "update_committee_member",
    "delete_committee_member",
]
