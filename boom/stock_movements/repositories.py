import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import update, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from fastcrud import FastCRUD

from boom.config import settings
from boom.core.utils import utcnow
from boom.catalog.models import Product
from boom.stock_movements.models import StockMovement, StockMovementRead

logger = logging.getLogger(__name__)

class SQLAlchemyStockMovementRepository:
    """
    Accès au journal de stock et au compteur `products.stock_quantity`.

    Les mouvements ne sont jamais modifiés ni supprimés. Le compteur n'est
    écrit que par `apply_change`, dans la même transaction que le mouvement.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.crud = FastCRUD(StockMovement)

    # --- Journal ---

    async def add(self, movement: StockMovement) -> StockMovement:
        try:
            self.db.add(movement)
            await self.db.commit()
            await self.db.refresh(movement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[StockMovementRepository] Erreur DB ajout mouvement produit {movement.product_id}: {e}", exc_info=True)
            raise
        return movement

    async def list_for_product(self, product_id: int, limit: int) -> List[StockMovement]:
        statement = (
            select(StockMovement)
            .where(StockMovement.product_id == product_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(statement)
        return list(result.scalars().all())

    async def list_recent(self, offset: int, limit: int, movement_type: Optional[str] = None) -> Tuple[List[StockMovementRead], int]:
        filters = {"type": movement_type} if movement_type else {}
        result = await self.crud.get_multi(
            self.db,
            offset=offset,
            limit=limit,
            schema_to_select=StockMovementRead,
            return_as_model=True,
            sort_columns=["created_at", "id"],
            sort_orders=["desc", "desc"],
            **filters,
        )
        return result.get("data", []), result.get("total_count", 0)

    async def count_since(self, since: datetime) -> int:
        return await self.crud.count(self.db, created_at__gte=since)

    async def sum_for_product(self, product_id: int) -> Tuple[int, int]:
        """Retourne (somme des deltas, nombre de mouvements) pour un produit."""
        statement = select(
            func.coalesce(func.sum(StockMovement.quantity), 0),
            func.count(StockMovement.id),
        ).where(StockMovement.product_id == product_id)
        result = await self.db.execute(statement)
        total, count = result.one()
        return int(total), int(count)

    # --- Compteur produit ---

    async def get_stock_level(self, product_id: int) -> Optional[int]:
        """Lit le stock directement en base (None si le produit n'existe pas)."""
        result = await self.db.execute(select(Product.stock_quantity).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def apply_change(self, product_id: int, expected_stock: int, new_stock: int, movement: StockMovement) -> Optional[StockMovement]:
        """
        Met à jour le compteur si sa valeur est toujours `expected_stock` et
        ajoute le mouvement, en un seul commit. Retourne None en cas de conflit.
        """
        try:
            result = await self.db.execute(
                update(Product)
                .where(Product.id == product_id, Product.stock_quantity == expected_stock)
                .values(stock_quantity=new_stock, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                return None
            self.db.add(movement)
            await self.db.commit()
            await self.db.refresh(movement)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[StockMovementRepository] Erreur DB changement stock produit {product_id}: {e}", exc_info=True)
            raise
        return movement

    # --- Alertes de stock ---

    def _low_stock_condition(self, include_out_of_stock: bool):
        threshold = func.coalesce(Product.stock_alert_threshold, settings.STOCK_DEFAULT_ALERT_THRESHOLD)
        condition = and_(Product.is_active == True, Product.stock_quantity <= threshold)  # noqa: E712
        if not include_out_of_stock:
            condition = and_(condition, Product.stock_quantity > 0)
        return condition

    async def count_active_products(self) -> int:
        result = await self.db.execute(select(func.count(Product.id)).where(Product.is_active == True))  # noqa: E712
        return result.scalar_one()

    async def count_low_stock(self, include_out_of_stock: bool = False) -> int:
        result = await self.db.execute(select(func.count(Product.id)).where(self._low_stock_condition(include_out_of_stock)))
        return result.scalar_one()

    async def count_out_of_stock(self) -> int:
        statement = select(func.count(Product.id)).where(Product.is_active == True, Product.stock_quantity == 0)  # noqa: E712
        result = await self.db.execute(statement)
        return result.scalar_one()

    async def list_low_stock(self, offset: int, limit: int, include_out_of_stock: bool = True) -> List[Product]:
        statement = (
            select(Product)
            .where(self._low_stock_condition(include_out_of_stock))
            .order_by(Product.stock_quantity, Product.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(statement)
        return list(result.scalars().all())
