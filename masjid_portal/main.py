"""
Masjid Portal - Point d'entrée principal de l'application.
Soldes des caisses, annuaire du comité et espaces caissier / administrateur.
"""

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from masjid_portal.config import settings
from masjid_portal.database import check_db_connection, init_db
from masjid_portal.core.exceptions import (
    AuthError,
    BackendError,
    BackendUnavailable,
    NotFound,
    ValidationError,
)
from masjid_portal.core.logging import setup_logging, logger, log_request
from masjid_portal.core.session_store import SessionStore
from masjid_portal.api.v1.router import api_router


# Configuration du logging au démarrage
setup_logging(
    log_level="DEBUG" if settings.DEBUG else "INFO",
    log_file=settings.LOG_FILE,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestionnaire de cycle de vie de l'application.
    Exécuté au démarrage et à l'arrêt.
    """
    logger.info("=" * 60)
    logger.info(f"Démarrage de {settings.APP_NAME} v{settings.APP_VERSION} - {settings.MOSQUE_NAME}")
    logger.info(f"Environnement: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    if not check_db_connection():
        logger.error("Impossible de se connecter à la base de données!")
    elif settings.DEBUG:
        # En mode développement, créer les tables manquantes
        logger.info("Mode DEBUG: initialisation de la base...")
        init_db()

    logger.info("Application prête à recevoir des requêtes")

    yield

    logger.info("Arrêt de l'application...")
    logger.info("Application arrêtée proprement")


app = FastAPI(
    title=settings.APP_NAME,
    description="""
    ## Masjid Portal - Caisses et comité de la mosquée

    ### Fonctionnalités principales:

    * **Tableau de bord public** - Soldes des caisses mosquée et imam, dernières transactions
    * **Comité** - Annuaire des membres avec photo
    * **Espace caissier** - Saisie, modification et suppression des transactions
    * **Espace administrateur** - Gestion des membres du comité et de leurs photos

    ### Rôles:

    * **Caissier** - Connexion par PIN, gère les transactions
    * **Admin** - Connexion par PIN, gère le comité
    """,
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_tags=[
        {"name": "Authentification", "description": "Connexion par PIN, session, déconnexion"},
        {"name": "Tableau de bord", "description": "Soldes et page d'accueil publique"},
        {"name": "Transactions", "description": "Entrées des caisses mosquée et imam"},
        {"name": "Comité", "description": "Membres du comité et photos"},
    ],
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Photos servies localement en développement
if settings.STORAGE_BACKEND == "local":
    Path(settings.LOCAL_MEDIA_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(
        settings.MEDIA_URL_PREFIX,
        StaticFiles(directory=settings.LOCAL_MEDIA_DIR),
        name="media",
    )


@app.middleware("http")
async def logging_middleware(request: Request, call_next: Callable) -> Response:
    """
    Middleware pour logger toutes les requêtes HTTP.
    """
    start_time = time.time()

    user_id = SessionStore.for_request(request).get("user_id")

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        url=str(request.url.path),
        status_code=response.status_code,
        duration_ms=duration_ms,
        user_id=user_id,
    )

    response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Gestionnaire personnalisé pour les erreurs de validation Pydantic.
    """
    logger.warning(f"Erreur de validation: {exc.errors()}")

    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Erreur de validation des données",
            "errors": errors,
        },
    )


@app.exception_handler(ValidationError)
async def portal_validation_handler(
    request: Request,
    exc: ValidationError
) -> JSONResponse:
    """
    Saisie refusée (photo invalide, etc.): le formulaire garde ses données.
    """
    logger.warning(f"Saisie refusée: {exc.message}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.message},
    )


@app.exception_handler(AuthError)
async def auth_exception_handler(
    request: Request,
    exc: AuthError
) -> JSONResponse:
    """
    Accès refusé: le client est renvoyé vers la connexion ou l'accueil public.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "redirect_to": exc.redirect_to,
        },
        headers={"Location": exc.redirect_to},
    )


@app.exception_handler(NotFound)
async def not_found_handler(
    request: Request,
    exc: NotFound
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": exc.message},
    )


@app.exception_handler(BackendError)
async def backend_exception_handler(
    request: Request,
    exc: BackendError
) -> JSONResponse:
    """
    Échec de la base ou du stockage: message générique, nouvel essai possible.
    Le détail est déjà journalisé par la couche qui a échoué.
    """
    logger.error(f"Erreur backend sur {request.method} {request.url.path}: {exc.message}")

    if isinstance(exc, BackendUnavailable):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_502_BAD_GATEWAY

    return JSONResponse(
        status_code=status_code,
        content={
            "detail": "Le service est momentanément indisponible. Veuillez réessayer.",
        },
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """
    Gestionnaire pour les erreurs de base de données non converties.
    """
    logger.error(f"Erreur SQLAlchemy: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Erreur de base de données",
            "message": "Une erreur est survenue lors de l'accès aux données",
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Gestionnaire pour toutes les autres exceptions.
    """
    logger.error(f"Erreur non gérée: {exc}", exc_info=True)

    if settings.DEBUG:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": str(exc),
                "type": type(exc).__name__,
            },
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Une erreur interne est survenue",
        },
    )


app.include_router(api_router, prefix="/api/v1")


@app.get(
    "/health",
    tags=["Système"],
    summary="Vérification de l'état de l'application",
)
async def health_check():
    """
    Endpoint de health check pour les load balancers et monitoring.
    """
    db_status = "ok" if check_db_connection() else "error"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": db_status,
    }


@app.get("/", tags=["Système"])
async def root():
    """
    Point d'entrée racine de l'API.
    """
    return {
        "name": settings.APP_NAME,
        "mosque": settings.MOSQUE_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs" if settings.DEBUG else "Documentation désactivée en production",
        "health": "/health",
        "api": "/api/v1",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "masjid_portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
