import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

# Database session
from boom.database import get_db_session

# Service
from boom.quotes.service import QuoteService

# Repository Interface and Implementation
from boom.quotes.interfaces.repositories import AbstractQuoteRepository
from boom.quotes.repositories import SQLAlchemyQuoteRepository

# Dépendances des autres modules
from boom.catalog.dependencies import ProductRepositoryDep
from boom.auth.dependencies import UserRepositoryDep

logger = logging.getLogger(__name__)

# --- Dépendances Repository ---

def get_quote_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)]
) -> AbstractQuoteRepository:
    """
    Fournit une instance du repository de devis (implémentation SQLAlchemy).

    Args:
        session: Session de base de données asynchrone.

    Returns:
        AbstractQuoteRepository: Instance du repository de devis.
    """
    logger.debug("Fourniture de SQLAlchemyQuoteRepository")
    return SQLAlchemyQuoteRepository(db_session=session)

QuoteRepositoryDep = Annotated[AbstractQuoteRepository, Depends(get_quote_repository)]

# --- Dépendances Service ---

def get_quote_service(
    quote_repo: QuoteRepositoryDep,
    product_repo: ProductRepositoryDep,
    user_repo: UserRepositoryDep,
) -> QuoteService:
    """Fournit une instance du service de gestion des devis."""
    logger.debug("Fourniture de QuoteService avec repositories")
    return QuoteService(quote_repo=quote_repo, product_repo=product_repo, user_repo=user_repo)

QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
