"""
Service d'authentification par code PIN.

Cycle de vie: Anonyme -> (connexion réussie) -> Authentifié{rôle} -> (déconnexion) -> Anonyme.
La session n'expire pas d'elle-même.
"""

from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from masjid_portal.core.exceptions import BackendUnavailable
from masjid_portal.core.logging import logger
from masjid_portal.core.security import verify_pin
from masjid_portal.core.session_store import SessionStore
from masjid_portal.models.user import User, UserRole


# Page d'arrivée de chaque espace après connexion
ROLE_HOME = {
    UserRole.ADMIN.value: "/admin/committee",
    UserRole.CASHIER.value: "/cashier/transactions",
}
LOGIN_PATH = "/login"
PUBLIC_HOME = "/"


@dataclass(frozen=True)
class AuthSession:
    """Identité de la session courante."""
    user_id: str
    role: str
    name: str


@dataclass(frozen=True)
class InvalidCredentials:
    """Aucun compte actif ne correspond au PIN et au rôle (résultat, pas exception)."""
    message: str = "PIN invalide. Veuillez réessayer."


@dataclass(frozen=True)
class GuardDecision:
    """Résultat d'un contrôle d'accès: autorisé ou page de redirection."""
    allowed: bool
    redirect_to: Optional[str] = None


def _role_value(role: Union[UserRole, str]) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def login(
    db: Session,
    store: SessionStore,
    pin: str,
    role: Union[UserRole, str],
) -> Union[AuthSession, InvalidCredentials]:
    """
    Connecte l'utilisateur actif dont le PIN et le rôle correspondent.

    Le PIN est comparé après suppression des espaces. En cas de succès la
    session est écrite dans `store`; sinon `store` n'est pas modifié.

    Raises:
        BackendUnavailable: la base de données n'a pas pu être interrogée
    """
    role_value = _role_value(role)
    cleaned_pin = (pin or "").strip()

    logger.info(f"Tentative de connexion pour le rôle {role_value}")

    try:
        candidates = (
            db.query(User)
            .filter(User.role == role_value, User.is_active == True)  # noqa: E712
            .order_by(User.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Impossible de vérifier le PIN: {e}")
        raise BackendUnavailable("Service de connexion indisponible") from e

    user = next(
        (candidate for candidate in candidates if verify_pin(cleaned_pin, candidate.pin_hash)),
        None,
    )

    if user is None:
        logger.warning(f"Aucun compte {role_value} actif pour ce PIN")
        return InvalidCredentials()

    store.clear()
    store.set("user_id", str(user.id))
    store.set("user_role", user.role)
    store.set("user_name", user.name)

    logger.info(f"Connexion réussie: {user.name} ({user.role})")
    return AuthSession(user_id=str(user.id), role=user.role, name=user.name)


def current_session(store: SessionStore) -> Optional[AuthSession]:
    """Lecture pure de la session; aucun accès à la base."""
    user_id = store.get("user_id")
    role = store.get("user_role")
    name = store.get("user_name")

    if not user_id or not role or not name:
        return None
    if role not in ROLE_HOME:
        return None

    return AuthSession(user_id=user_id, role=role, name=name)


def require_role(store: SessionStore, role: Union[UserRole, str]) -> GuardDecision:
    """
    Vérifie que la session a le rôle demandé.

    Sans session: redirection vers la page de connexion.
    Avec un autre rôle: redirection vers l'accueil public.
    """
    session = current_session(store)
    if session is None:
        logger.debug("Pas de session, redirection vers la connexion")
        return GuardDecision(allowed=False, redirect_to=LOGIN_PATH)

    if session.role != _role_value(role):
        logger.debug(f"Rôle {session.role} refusé pour l'espace {_role_value(role)}")
        return GuardDecision(allowed=False, redirect_to=PUBLIC_HOME)

    return GuardDecision(allowed=True)


def logout(store: SessionStore) -> None:
    """Efface les trois clés de session, même sans session ouverte."""
    session = current_session(store)
    if session:
        logger.info(f"Déconnexion: {session.name}")
    store.clear()


def home_for(role: Union[UserRole, str]) -> str:
    return ROLE_HOME.get(_role_value(role), PUBLIC_HOME)


__all__ = [
    "AuthSession",
    "InvalidCredentials",
    "GuardDecision",
    "login",
    "current_session",
    "require_role",
    "logout",
    "home_for",
    "LOGIN_PATH",
    "PUBLIC_HOME",
]
