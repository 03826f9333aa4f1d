import logging
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from boom.database import get_db_session
from boom.catalog.dependencies import ProductRepositoryDep
from .repositories import SQLAlchemyStockMovementRepository
from .service import StockMovementService

logger = logging.getLogger(__name__)

def get_stock_movement_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)]
) -> SQLAlchemyStockMovementRepository:
    return SQLAlchemyStockMovementRepository(db_session=session)

StockMovementRepositoryDep = Annotated[SQLAlchemyStockMovementRepository, Depends(get_stock_movement_repository)]

def get_stock_movement_service(
    movement_repo: StockMovementRepositoryDep,
    product_repo: ProductRepositoryDep,
) -> StockMovementService:
    """Fournit une instance du service de mouvements de stock."""
    logger.debug("Fourniture de StockMovementService")
    return StockMovementService(movement_repo=movement_repo, product_repo=product_repo)

StockMovementServiceDep = Annotated[StockMovementService, Depends(get_stock_movement_service)]
