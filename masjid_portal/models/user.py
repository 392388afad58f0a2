"""
Modèle User - Comptes caissier et administrateur du comité.
Les comptes sont créés hors de l'application (scripts/create_user.py).
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Index
from sqlalchemy.orm import relationship

from masjid_portal.database import Base


class UserRole(str, enum.Enum):
    """Rôles disponibles pour les utilisateurs."""
    ADMIN = "admin"         # Gestion du comité
    CASHIER = "cashier"     # Saisie des transactions


class User(Base):
    """
    Modèle représentant un utilisateur du portail.

    Attributes:
        id: Identifiant unique
        name: Nom affiché
        role: admin ou cashier
        pin_hash: Hash bcrypt du code PIN à 4 chiffres
        is_active: Compte actif ou non
        created_at: Date de création du compte
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    role = Column(
        Enum('admin', 'cashier', name='userrole'),
        nullable=False
    )
    pin_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relations
    transactions = relationship("Transaction", back_populates="user")

    __table_args__ = (
        Index("idx_user_role_active", "role", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, name='{self.name}', role={self.role})>"
