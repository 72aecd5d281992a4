"""
Application FastAPI principale
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from contextlib import asynccontextmanager
from urllib.parse import urlparse
import logging
import time

from formation_portal.core.config import settings
from formation_portal.core.exceptions import PortalError, StepValidationError
from formation_portal.core.firebase_connector import initialize_firebase
from formation_portal.core.logging import setup_logging
from formation_portal.api.v1.api import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestion du cycle de vie de l'application"""
    setup_logging()
    logger.info("Démarrage de %s v%s (debug=%s)", settings.APP_NAME, settings.APP_VERSION, settings.DEBUG)

    # Connexion à Firebase (Auth, Firestore, Storage)
    initialize_firebase()

    yield

    logger.info("Arrêt de l'application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Catalogue de formations, inscription en ligne et console d'administration",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

# --- Configuration CORS ---
LOCAL_ORIGIN_REGEX = r"^https?://(localhost|127\.0\.0\.1)(:[0-9]+)?$"


def _sanitize_origins(origins_list):
    clean = []
    for o in origins_list:
        if not o or o == "*":
            continue
        parsed = urlparse(o)
        if parsed.scheme in ("http", "https") and parsed.netloc:
            clean.append(o.rstrip("/"))
    return list(dict.fromkeys(clean))


app.add_middleware(
    CORSMiddleware,
    allow_origins=_sanitize_origins(settings.BACKEND_CORS_ORIGINS),
    allow_origin_regex=LOCAL_ORIGIN_REGEX if settings.DEBUG else None,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({"detail": exc.errors(), "body": exc.body}),
    )


@app.exception_handler(PortalError)
async def portal_exception_handler(request: Request, exc: PortalError):
    content = {"detail": exc.message}
    if isinstance(exc, StepValidationError):
        content.update({
            "step": exc.step,
            "errors": exc.to_list(),
            "first_error_field": exc.first_error_field,
        })
    elif getattr(exc, "code", None):
        content["code"] = exc.code
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["Monitoring"])
async def health_check():
    """Vérifie que le service est en ligne."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Route racine"""
    return {
        "message": f"Bienvenue sur {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/api/docs" if settings.DEBUG else "disabled",
        "api": settings.API_V1_STR,
    }

# Pour lancer le serveur en mode développement :
# uvicorn formation_portal.main:app --reload
