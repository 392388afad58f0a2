"""
Modèle Transaction - Entrées d'argent dans les caisses de la mosquée et de l'imam.
Toutes les transactions augmentent le solde de leur caisse.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, Text, Date, DateTime, Enum,
    Numeric, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from masjid_portal.database import Base


class Fund(str, enum.Enum):
    """Caisses indépendantes."""
    MOSQUE = "mosque"
    IMAM = "imam"


class Transaction(Base):
    """
    Modèle représentant une transaction de caisse.

    Attributes:
        id: Identifiant unique
        amount: Montant (toujours positif)
        purpose: Motif de la transaction
        fund: Caisse créditée
        transaction_date: Date de l'opération
        created_at: Date de saisie
        created_by: Caissier ayant saisi la transaction
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    amount = Column(Numeric(12, 2), nullable=False)
    purpose = Column(Text, nullable=False)
    fund = Column(
        Enum('mosque', 'imam', name='fundtype'),
        nullable=False
    )
    transaction_date = Column(Date, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relations
    user = relationship("User", back_populates="transactions", lazy="joined")

    __table_args__ = (
        Index("idx_transaction_fund", "fund"),
        Index("idx_transaction_date", "transaction_date", "created_at"),
        CheckConstraint("amount > 0", name="positive_amount"),
    )

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, amount={self.amount}, fund={self.fund})>"

    @property
    def created_by_name(self) -> str:
        """Nom du caissier, "Unknown" si le compte n'existe plus."""
        return self.user.name if self.user else "Unknown"
