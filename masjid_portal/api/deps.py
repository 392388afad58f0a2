"""
Dépendances FastAPI pour l'injection de dépendances.
Gère la session, le contrôle d'accès par rôle et l'accès au stockage.

Les contrôles de rôle sont évalués au niveau du routage, avant
l'exécution de la route: aucune donnée protégée n'est produite pour une
session refusée.
"""

from typing import Union

from fastapi import Depends, Request

from masjid_portal.database import get_db
from masjid_portal.core.exceptions import NotAuthenticated, RoleMismatch
from masjid_portal.core.logging import logger
from masjid_portal.core.session_store import SessionStore
from masjid_portal.models.user import UserRole
from masjid_portal.services import auth_service
from masjid_portal.services.auth_service import AuthSession
from masjid_portal.services.storage import StorageBackend, get_storage_backend


def get_session_store(request: Request) -> SessionStore:
    """Session du navigateur, lue depuis le cookie ou l'en-tête Authorization."""
    return SessionStore.for_request(request)


def require_role(role: Union[UserRole, str]):
    """
    Dépendance qui restreint une route à un rôle.

    Usage:
        @router.post("/", dependencies=[Depends(require_role(UserRole.CASHIER))])
        def cashier_only():
            pass

        # Ou pour récupérer la session
        @router.post("/")
        def add(session: AuthSession = Depends(require_cashier)):
            pass
    """
    async def role_guard(
        store: SessionStore = Depends(get_session_store),
    ) -> AuthSession:
        decision = auth_service.require_role(store, role)

        if not decision.allowed:
            if decision.redirect_to == auth_service.LOGIN_PATH:
                logger.warning("Tentative d'accès sans session")
                raise NotAuthenticated("Connexion requise")
            logger.warning(
                f"Accès refusé pour {store.get('user_name')}: "
                f"rôle {store.get('user_role')} non autorisé"
            )
            raise RoleMismatch("Accès réservé à un autre rôle")

        return auth_service.current_session(store)

    return role_guard


# Dépendances prédéfinies pour les deux espaces
require_admin = require_role(UserRole.ADMIN)
require_cashier = require_role(UserRole.CASHIER)


def get_storage() -> StorageBackend:
    """Backend de stockage des photos du comité."""
    return get_storage_backend()


__all__ = [
    "get_db",
    "get_session_store",
    "require_role",
    "require_admin",
    "require_cashier",
    "get_storage",
]
