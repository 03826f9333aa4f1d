"""
Module principal de l'application FastAPI Boom.

Ce module configure et initialise l'instance FastAPI, ajoute le middleware
CORS et inclut les routeurs de l'API (authentification, devis, mouvements
de stock).
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boom.config import settings

# --- Importer les routeurs ---
from boom.auth.router import auth_router
from boom.quotes.router import quotes_router
from boom.stock_movements.router import stock_movements_router

# Enregistrer toutes les tables
from boom import models  # noqa: F401

# Configurer le logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Boom API",
    description="API du cycle commercial: devis professionnels et journal de stock.",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range"],
)

# ======================================================
# Inclure les routeurs
# ======================================================
app.include_router(auth_router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["Authentification"])

# Routeur de devis
app.include_router(quotes_router, prefix=f"{settings.API_V1_PREFIX}/quotes", tags=["Quotes"])

# Routeur des mouvements de stock
app.include_router(stock_movements_router, prefix=f"{settings.API_V1_PREFIX}/stock-movements", tags=["Stock Movements"])

@app.get("/", tags=["Root"])
async def read_root():
    """Point d'entrée racine de l'API."""
    return {"message": "Bienvenue sur l'API Boom"}

logger.info("Application FastAPI Boom initialisée.")
