"""
Point d'entrée principal de l'API Student Records.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import app.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata avant create_all
from app.config import settings
from app.database import create_tables
from app.exceptions import RecordError, UnexpectedError, ValidationError
from app.routers import students
from app.schemas.common import ErrorResponse, field_errors_from_pydantic

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie de l'application : crée les tables manquantes au démarrage."""
    create_tables()
    logger.info("Student Records API démarrée (env=%s).", settings.ENV)
    yield


app = FastAPI(
    title="Student Records API",
    description="API d'administration des dossiers étudiants et de leurs notes",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS — autorise les ports localhost en développement (à restreindre en production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-User-Role"],
)


app.include_router(students.router)


def _error_response(status_code: int, message: str, errors=None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=[e.as_dict() for e in errors] if errors else None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(RecordError)
async def record_error_handler(request: Request, exc: RecordError) -> JSONResponse:
    """Erreurs métier attendues : transmises telles quelles avec leur code HTTP."""
    if isinstance(exc, UnexpectedError):
        logger.error("Erreur de stockage sur %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Corps ou paramètres invalides → 400 avec une entrée (field, message) par règle violée."""
    error = ValidationError(errors=field_errors_from_pydantic(exc.errors()))
    return _error_response(error.status_code, error.message, error.errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Route inconnue, méthode non autorisée... : même enveloppe que les autres erreurs."""
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Échec BDD hors écriture (lecture, connexion) : détail journalisé, message générique."""
    logger.error("Erreur BDD non gérée : %s", exc, exc_info=True)
    error = UnexpectedError()
    return _error_response(error.status_code, error.message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    error = UnexpectedError()
    return _error_response(error.status_code, error.message)


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Student Records API", "version": "0.1.0"}
