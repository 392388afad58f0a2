"""
Module des modèles SQLAlchemy du portail.
Définit toutes les entités de la base de données.
"""

from .user import User, UserRole
from .transaction import Transaction, Fund
from .committee import CommitteeMember, ImageState

__all__ = [
    # User
    "User",
    "UserRole",
    # Transaction
    "Transaction",
    "Fund",
    # Committee
    "CommitteeMember",
    "ImageState",
]
