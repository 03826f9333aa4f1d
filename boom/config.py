import logging
from typing import Optional, List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Charger les variables d'environnement AVANT de définir la classe Settings
load_dotenv()

DEFAULT_JWT_SECRET_KEY = "remplacer_par_une_vraie_cle_secrete_forte"

# Classe de configuration utilisant Pydantic BaseSettings
class Settings(BaseSettings):
    # --- Base de Données ---
    # DATABASE_URL prend le pas sur les variables POSTGRES_* si elle est définie
    DATABASE_URL: Optional[str] = None
    POSTGRES_DB: str = "boom"
    POSTGRES_USER: str = "boom"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    DB_ECHO_LOG: bool = False

    # --- Application ---
    API_V1_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # --- JWT ---
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Tarification / Devis ---
    DEFAULT_TAX_RATE: float = 20.0
    DEFAULT_QUOTE_VALIDITY_DAYS: int = 30
    QUOTE_NUMBER_MAX_ATTEMPTS: int = 5

    # --- Stock ---
    STOCK_DEFAULT_ALERT_THRESHOLD: int = 5
    STOCK_HISTORY_LIMIT: int = 50

    # --- Stockage client (panier / comparateur) ---
    COMPARISON_MAX_ITEMS: int = 4
    CLIENT_STORAGE_DIR: str = ".boom-storage"

    # --- PDF des devis ---
    PDF_COMPANY_INFO_HTML: str = (
        "<b>Boom Informatique</b><br/>"
        "123 Rue du Commerce, 75001 Paris<br/>"
        "Tél : 01 23 45 67 89<br/>"
        "Email : contact@boom-informatique.com"
    )
    PDF_FOOTER_TEXT: str = "Boom Informatique - SIRET 123 456 789 00000 - TVA FR12 345678900"
    PDF_PRIMARY_COLOR_HEX: str = "#2563eb"

    @property
    def database_url(self) -> str:
        """URL SQLAlchemy async effective."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore' # Ignorer les variables d'env non définies dans le modèle

# Instancier la classe de configuration
settings = Settings()

if settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY:
    logger.warning("La variable JWT_SECRET_KEY utilise la valeur par défaut. Veuillez définir une clé secrète forte.")

logger.info(f"Configuration chargée: DB host={settings.POSTGRES_HOST}, TVA par défaut={settings.DEFAULT_TAX_RATE}%")
