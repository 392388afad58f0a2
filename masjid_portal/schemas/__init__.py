"""
Module des schémas Pydantic du portail.
Définit les modèles de validation pour les requêtes et réponses API.
"""

from .user import (
    LoginRequest,
    LoginResponse,
    SessionResponse,
    SessionStatus,
)
from .transaction import (
    TransactionBase,
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
)
from .committee import (
    CommitteeMemberCreate,
    CommitteeMemberUpdate,
    CommitteeMemberResponse,
    ReconcileReport,
)
from .dashboard import DashboardStats, DashboardResponse

__all__ = [
    # User
    "LoginRequest",
    "LoginResponse",
    "SessionResponse",
    "SessionStatus",
    # Transaction
    "TransactionBase",
    "TransactionCreate",
    "TransactionUpdate",
    "TransactionResponse",
    # Committee
    "CommitteeMemberCreate",
    "CommitteeMemberUpdate",
    "CommitteeMemberResponse",
    "ReconcileReport",
    # Dashboard
    "DashboardStats",
    "DashboardResponse",
]
