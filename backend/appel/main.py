"""
Point d'entrée principal de l'API Appel (présences en classe par code à 3 chiffres).
Démarrage : uvicorn appel.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import appel.models  # noqa: F401 (enregistre tous les modèles dans Base.metadata avant les routers)
from appel.exceptions import AppelError
from appel.routers import attendances, classes, codes, stats, users

logger = logging.getLogger(__name__)


app = FastAPI(
    title="Appel API",
    description="API de suivi des présences en classe par codes temporaires",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# CORS : autorise tous les ports localhost en développement (à restreindre en production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-User-Id", "X-User-Role"],
)


app.include_router(users.router)
app.include_router(classes.router)
app.include_router(codes.router)
app.include_router(attendances.router)
app.include_router(stats.router)


@app.exception_handler(AppelError)
async def appel_error_handler(request: Request, exc: AppelError) -> JSONResponse:
    """Convertit une erreur métier en réponse JSON avec son code HTTP."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Appel API", "version": "0.1.0"}
