import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boom.database import get_db_session
from boom.catalog.interfaces.repositories import AbstractProductRepository
from boom.catalog.repositories import SQLAlchemyProductRepository

logger = logging.getLogger(__name__)

def get_product_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)]
) -> AbstractProductRepository:
    """Fournit une instance du repository catalogue (implémentation SQLAlchemy)."""
    logger.debug("Fourniture de SQLAlchemyProductRepository")
    return SQLAlchemyProductRepository(db=session)

ProductRepositoryDep = Annotated[AbstractProductRepository, Depends(get_product_repository)]
