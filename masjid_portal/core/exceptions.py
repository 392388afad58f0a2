"""
Exceptions métier du portail.

Taxonomie:
    ValidationError  - saisie invalide, détectée avant tout appel réseau
    AuthError        - pas de session ou mauvais rôle (provoque une redirection)
    BackendError     - échec de la base ou du stockage sur le chemin critique
    CleanupError     - échec d'un nettoyage best-effort (journalisé uniquement)
"""

from typing import Optional, Sequence


class PortalError(Exception):
    """Classe de base des erreurs du portail."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Donnée saisie invalide."""


class InvalidImage(ValidationError):
    """Fichier qui n'est pas une image ou qui dépasse la taille maximale."""


class AuthError(PortalError):
    """Accès refusé; le client doit être redirigé vers `redirect_to`."""

    status_code = 401
    redirect_to = "/login"


class NotAuthenticated(AuthError):
    """Aucune session ouverte."""

    status_code = 401
    redirect_to = "/login"


class RoleMismatch(AuthError):
    """Session ouverte mais avec un rôle différent de celui requis."""

    status_code = 403
    redirect_to = "/"


class NotFound(PortalError):
    """Enregistrement introuvable."""


class BackendError(PortalError):
    """Échec d'un appel à la base de données ou au stockage objet."""


class BackendUnavailable(BackendError):
    """Backend injoignable ou délai dépassé."""


class StorageError(BackendError):
    """Le stockage objet a répondu par une erreur."""

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CleanupError(PortalError):
    """
    Échec d'une suppression compensatoire.
    Jamais levée vers l'appelant: construite pour être journalisée.
    """

    def __init__(self, keys: Sequence[str], cause: Exception):
        super().__init__(f"Suppression impossible de {list(keys)}: {cause}")
        self.keys = list(keys)
        self.cause = cause


__all__ = [
    "PortalError",
    "ValidationError",
    "InvalidImage",
    "AuthError",
    "NotAuthenticated",
    "RoleMismatch",
    "NotFound",
    "BackendError",
    "BackendUnavailable",
    "StorageError",
    "CleanupError",
]
