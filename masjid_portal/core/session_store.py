"""
Stockage de session du navigateur.

La session est un petit ensemble de clés texte (user_id, user_role,
user_name) conservé côté client sous forme de jeton signé, dans un cookie
ou dans l'en-tête Authorization pour les clients API.
"""

from typing import Dict, Optional

from fastapi import Request, Response

from masjid_portal.config import settings
from masjid_portal.core.security import create_session_token, decode_session_token


SESSION_KEYS = ("user_id", "user_role", "user_name")

# Durée du cookie quand la session n'expire pas (10 ans)
PERSISTENT_COOKIE_MAX_AGE = 10 * 365 * 24 * 3600


class SessionStore:
    """
    Stockage clé/valeur de la session courante.

    Ne fait aucun appel réseau ni base de données: toutes les lectures
    portent sur les valeurs chargées depuis le jeton de la requête.
    """

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = {}
        for key, value in (values or {}).items():
            if key in SESSION_KEYS and value is not None:
                self._values[key] = str(value)

    def __repr__(self) -> str:
        return f"<SessionStore(user_id={self.get('user_id')}, role={self.get('user_role')})>"

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        if key not in SESSION_KEYS:
            raise KeyError(f"Clé de session inconnue: {key}")
        self._values[key] = str(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        """Supprime les trois clés de session, même si elles sont absentes."""
        for key in SESSION_KEYS:
            self.remove(key)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)

    @property
    def is_empty(self) -> bool:
        return not self._values

    def to_token(self) -> str:
        return create_session_token(self.as_dict())

    @classmethod
    def from_token(cls, token: Optional[str]) -> "SessionStore":
        """Charge la session depuis un jeton; un jeton invalide donne une session vide."""
        if not token:
            return cls()
        payload = decode_session_token(token)
        if payload is None:
            return cls()
        return cls({key: payload.get(key) for key in SESSION_KEYS})

    @classmethod
    def from_request(cls, request: Request) -> "SessionStore":
        """
        Lit la session depuis le cookie, ou à défaut depuis un en-tête
        `Authorization: Bearer <jeton>`.
        """
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)
        if not token:
            auth_header = request.headers.get("Authorization")
            if auth_header and auth_header.startswith("Bearer "):
                token = auth_header[7:]
        return cls.from_token(token)

    @classmethod
    def for_request(cls, request: Request) -> "SessionStore":
        """
        Session de la requête, décodée une seule fois puis partagée par le
        middleware et les dépendances via `request.state`.
        """
        store = getattr(request.state, "session_store", None)
        if store is None:
            store = cls.from_request(request)
            request.state.session_store = store
        return store

    def save(self, response: Response) -> None:
        """Écrit la session dans le cookie de la réponse (ou l'efface si vide)."""
        if self.is_empty:
            response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
            return

        if settings.SESSION_EXPIRE_MINUTES:
            max_age = settings.SESSION_EXPIRE_MINUTES * 60
        else:
            max_age = PERSISTENT_COOKIE_MAX_AGE

        response.set_cookie(
            settings.SESSION_COOKIE_NAME,
            self.to_token(),
            max_age=max_age,
            path="/",
            httponly=True,
            samesite="lax",
            secure=settings.ENVIRONMENT == "production",
        )


__all__ = ["SessionStore", "SESSION_KEYS"]
