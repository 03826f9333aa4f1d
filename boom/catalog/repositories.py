import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from boom.catalog.models import Product
from boom.catalog.interfaces.repositories import AbstractProductRepository

logger = logging.getLogger(__name__)

class SQLAlchemyProductRepository(AbstractProductRepository):
    """Implémentation SQLAlchemy de la consultation du catalogue."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        logger.debug(f"[ProductRepository] Lecture produit ID: {product_id}")
        try:
            product = await self.db.get(Product, product_id)
        except SQLAlchemyError as e:
            logger.error(f"[ProductRepository] Erreur DB lecture produit {product_id}: {e}", exc_info=True)
            raise
        if product is None or not product.is_active:
            return None
        return product

    async def get_active_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        statement = select(Product).where(Product.id.in_(ids), Product.is_active == True)  # noqa: E712
        result = await self.db.execute(statement)
        return {p.id: p for p in result.scalars().all()}

    async def get_any_by_ids(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        ids = {pid for pid in product_ids if pid is not None}
        if not ids:
            return {}
        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        return {p.id: p for p in result.scalars().all()}
