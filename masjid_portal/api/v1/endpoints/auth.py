"""
Routes d'authentification - Connexion par PIN, session, déconnexion.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from masjid_portal.database import get_db
from masjid_portal.core.session_store import SessionStore
from masjid_portal.schemas.user import (
    LoginRequest,
    LoginResponse,
    SessionResponse,
    SessionStatus,
)
from masjid_portal.api.deps import get_session_store
from masjid_portal.services import auth_service


router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Connexion par code PIN",
)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> Any:
    """
    Connecte un caissier ou un administrateur avec son PIN à 4 chiffres.

    - **pin**: code PIN
    - **role**: `admin` ou `cashier`

    La session est posée dans un cookie et retournée sous forme de jeton
    pour les clients API.
    """
    result = auth_service.login(db, store, credentials.pin, credentials.role)

    if isinstance(result, auth_service.InvalidCredentials):
        # Message générique: ne pas révéler quels PIN existent
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
        )

    store.save(response)

    return LoginResponse(
        session=SessionResponse(user_id=result.user_id, role=result.role, name=result.name),
        access_token=store.to_token(),
        redirect_to=auth_service.home_for(result.role),
    )


@router.get(
    "/session",
    response_model=SessionStatus,
    summary="Session courante",
)
async def get_session(
    store: SessionStore = Depends(get_session_store),
) -> Any:
    """
    Retourne l'identité de la session courante, sans accès à la base.
    """
    session = auth_service.current_session(store)
    if session is None:
        return SessionStatus(authenticated=False)

    return SessionStatus(
        authenticated=True,
        session=SessionResponse(user_id=session.user_id, role=session.role, name=session.name),
    )


@router.post(
    "/logout",
    status_code=status.HTTP_303_SEE_OTHER,
    summary="Déconnexion",
)
async def logout(
    store: SessionStore = Depends(get_session_store),
) -> Any:
    """
    Efface la session et renvoie vers l'accueil public.
    Fonctionne aussi sans session ouverte.
    """
    auth_service.logout(store)

    response = RedirectResponse(url=auth_service.PUBLIC_HOME, status_code=status.HTTP_303_SEE_OTHER)
    store.save(response)
    return response
