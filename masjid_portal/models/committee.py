"""
Modèle CommitteeMember - Membres du comité de la mosquée et leur photo.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, Index
from sqlalchemy.orm import validates

from masjid_portal.database import Base


class ImageState(str, enum.Enum):
    """État du fichier photo rattaché à un membre."""
    PENDING = "pending"         # Encore sous sa clé temporaire
    COMMITTED = "committed"     # Renommé avec l'ID du membre


class CommitteeMember(Base):
    """
    Modèle représentant un membre du comité.

    La photo vit dans le stockage objet; `image_key` est sa clé dans le
    bucket et `image_url` son URL publique. Un membre `pending` pointe encore
    vers le fichier temporaire créé avant l'insertion et doit être
    réconcilié (voir services.media_service).

    Attributes:
        id: Identifiant unique
        name: Nom du membre
        image_url: URL publique de la photo
        image_key: Clé de la photo dans le bucket
        image_state: pending, committed ou NULL sans photo
        designation: Fonction au sein du comité
        phone: Téléphone (optionnel)
        is_active: Affiché dans l'annuaire
    """

    __tablename__ = "committee_members"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    designation = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Photo
    image_url = Column(String(500), nullable=True)
    image_key = Column(String(255), nullable=True)
    image_state = Column(
        Enum('pending', 'committed', name='imagestate'),
        nullable=True
    )

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_committee_active_created", "is_active", "created_at"),
        Index("idx_committee_image_state", "image_state"),
    )

    def __repr__(self) -> str:
        return f"<CommitteeMember(id={self.id}, name='{self.name}', image={self.image_state})>"

    @validates("image_state")
    def _validate_image_state(self, key, value):
        if isinstance(value, ImageState):
            return value.value
        return value

    @property
    def image_pending(self) -> bool:
        """Photo encore sous sa clé temporaire."""
        return self.image_state == ImageState.PENDING.value
