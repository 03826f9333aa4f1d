import logging
from datetime import datetime, time, timezone
from typing import List, Optional

from boom.config import settings
from boom.core.utils import utcnow
from boom.catalog.exceptions import ProductNotFoundException
from boom.catalog.interfaces.repositories import AbstractProductRepository
from boom.core.exceptions import DomainException

from .constants import (
    MOVEMENT_TYPE_IN,
    MOVEMENT_TYPE_OUT,
    MOVEMENT_TYPE_ADJUSTMENT,
    MOVEMENT_TYPES,
    REFERENCE_ADMIN,
    DELETED_PRODUCT_NAME,
    DELETED_PRODUCT_SKU,
)
from .exceptions import (
    InvalidStockMovementOperationException,
    NegativeStockException,
    StockConflictException,
)
from .models import (
    StockMovement,
    StockMovementRead,
    StockMovementWithProduct,
    PaginatedStockMovementResponse,
    StockChangeResult,
    BulkStockUpdateLine,
    BulkStockUpdateResult,
    StockStats,
    LowStockProduct,
    PaginatedLowStockResponse,
    LedgerBalance,
)
from .repositories import SQLAlchemyStockMovementRepository

logger = logging.getLogger(__name__)

class StockMovementService:
    """Service applicatif du journal de stock (mouvements immuables)."""

    def __init__(self, movement_repo: SQLAlchemyStockMovementRepository, product_repo: AbstractProductRepository):
        self.movement_repo = movement_repo
        self.product_repo = product_repo

    @staticmethod
    def _validate_type(movement_type: str) -> None:
        if movement_type not in MOVEMENT_TYPES:
            raise InvalidStockMovementOperationException(
                f"Type de mouvement inconnu: '{movement_type}' (attendu: {', '.join(MOVEMENT_TYPES)})."
            )

    async def _ensure_product_exists(self, product_id: int) -> None:
        products = await self.product_repo.get_any_by_ids([product_id])
        if product_id not in products:
            raise ProductNotFoundException(product_id)

    # --- Journal ---

    async def record(
        self,
        product_id: Optional[int],
        quantity: int,
        movement_type: str,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StockMovementRead:
        """
        Ajoute un mouvement au journal sans toucher au compteur du produit.
        Le signe du delta doit correspondre au type: in > 0, out < 0.
        """
        self._validate_type(movement_type)
        if movement_type == MOVEMENT_TYPE_IN and quantity <= 0:
            raise InvalidStockMovementOperationException("Un mouvement d'entrée doit avoir une quantité positive.")
        if movement_type == MOVEMENT_TYPE_OUT and quantity >= 0:
            raise InvalidStockMovementOperationException("Un mouvement de sortie doit avoir une quantité négative.")
        if product_id is not None:
            await self._ensure_product_exists(product_id)

        logger.info(f"[StockMovementService] Enregistrement mouvement: produit={product_id}, type={movement_type}, delta={quantity}, ref={reference}")
        movement = await self.movement_repo.add(StockMovement(
            product_id=product_id,
            quantity=quantity,
            type=movement_type,
            reference=reference,
            notes=notes,
        ))
        return StockMovementRead.model_validate(movement)

    async def history(self, product_id: int, limit: Optional[int] = None) -> List[StockMovementRead]:
        """Mouvements d'un produit, du plus récent au plus ancien."""
        limit = limit or settings.STOCK_HISTORY_LIMIT
        logger.debug(f"[StockMovementService] Historique produit {product_id} (limit={limit})")
        movements = await self.movement_repo.list_for_product(product_id, limit)
        return [StockMovementRead.model_validate(m) for m in movements]

    # --- Changements de stock ---

    async def apply_stock_change(
        self,
        product_id: int,
        quantity: int,
        movement_type: str,
        notes: Optional[str] = None,
        reference: str = REFERENCE_ADMIN,
    ) -> StockChangeResult:
        """
        Change le stock d'un produit et journalise le mouvement dans la même transaction.

        - in: ajoute `quantity`
        - out: retire `quantity`
        - adjustment: fixe le stock à `quantity` (le mouvement porte l'écart)
        """
        self._validate_type(movement_type)
        if quantity < 0:
            raise InvalidStockMovementOperationException("La quantité doit être positive ou nulle.")
        if movement_type in (MOVEMENT_TYPE_IN, MOVEMENT_TYPE_OUT) and quantity == 0:
            raise InvalidStockMovementOperationException("Une entrée ou une sortie doit porter sur au moins une unité.")

        current_stock = await self.movement_repo.get_stock_level(product_id)
        if current_stock is None:
            raise ProductNotFoundException(product_id)

        if movement_type == MOVEMENT_TYPE_ADJUSTMENT:
            new_stock = quantity
        elif movement_type == MOVEMENT_TYPE_IN:
            new_stock = current_stock + quantity
        else:
            new_stock = current_stock - quantity

        if new_stock < 0:
            logger.warning(f"[StockMovementService] Stock négatif refusé pour produit {product_id}: {current_stock} -> {new_stock}")
            raise NegativeStockException(product_id, current_stock, new_stock)

        movement = await self.movement_repo.apply_change(
            product_id=product_id,
            expected_stock=current_stock,
            new_stock=new_stock,
            movement=StockMovement(
                product_id=product_id,
                quantity=new_stock - current_stock,
                type=movement_type,
                reference=reference,
                notes=notes,
            ),
        )
        if movement is None:
            logger.warning(f"[StockMovementService] Conflit de mise à jour du stock produit {product_id} (attendu {current_stock})")
            raise StockConflictException(product_id)

        logger.info(f"[StockMovementService] Stock produit {product_id}: {current_stock} -> {new_stock} ({movement_type})")
        return StockChangeResult(
            product_id=product_id,
            previous_stock=current_stock,
            new_stock=new_stock,
            movement=StockMovementRead.model_validate(movement),
        )

    async def bulk_update_stock(self, updates: List[BulkStockUpdateLine]) -> List[BulkStockUpdateResult]:
        """Applique chaque ligne indépendamment; les échecs sont rapportés, pas levés."""
        if not updates:
            raise InvalidStockMovementOperationException("Au moins une mise à jour est requise.")

        results: List[BulkStockUpdateResult] = []
        for line in updates:
            try:
                change = await self.apply_stock_change(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    movement_type=line.type,
                    notes=line.notes,
                )
                results.append(BulkStockUpdateResult(product_id=line.product_id, success=True, new_stock=change.new_stock))
            except DomainException as e:
                results.append(BulkStockUpdateResult(product_id=line.product_id, success=False, error=e.message))

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"[StockMovementService] Mise à jour groupée: {succeeded}/{len(results)} ligne(s) appliquée(s)")
        return results

    # --- Consultation back-office ---

    async def list_recent_movements(self, page: int = 1, limit: int = 50, movement_type: Optional[str] = None) -> PaginatedStockMovementResponse:
        """Mouvements récents tous produits confondus, avec nom et SKU du produit."""
        if movement_type is not None:
            self._validate_type(movement_type)
        offset = (page - 1) * limit
        logger.debug(f"[StockMovementService] Mouvements récents: page={page}, limit={limit}, type={movement_type}")

        movements, total = await self.movement_repo.list_recent(offset=offset, limit=limit, movement_type=movement_type)
        products = await self.product_repo.get_any_by_ids(m.product_id for m in movements)

        items = []
        for movement in movements:
            product = products.get(movement.product_id)
            items.append(StockMovementWithProduct(
                **movement.model_dump(),
                product_name=product.name if product else DELETED_PRODUCT_NAME,
                product_sku=product.sku if product else DELETED_PRODUCT_SKU,
            ))
        return PaginatedStockMovementResponse(items=items, total=total, page=page, limit=limit)

    async def get_stock_stats(self) -> StockStats:
        today_start = datetime.combine(utcnow().date(), time.min, tzinfo=timezone.utc)
        return StockStats(
            total_products=await self.movement_repo.count_active_products(),
            low_stock_count=await self.movement_repo.count_low_stock(include_out_of_stock=False),
            out_of_stock_count=await self.movement_repo.count_out_of_stock(),
            total_movements_today=await self.movement_repo.count_since(today_start),
        )

    async def list_low_stock_products(self, page: int = 1, limit: int = 20, include_out_of_stock: bool = True) -> PaginatedLowStockResponse:
        offset = (page - 1) * limit
        products = await self.movement_repo.list_low_stock(offset=offset, limit=limit, include_out_of_stock=include_out_of_stock)
        total = await self.movement_repo.count_low_stock(include_out_of_stock=include_out_of_stock)
        return PaginatedLowStockResponse(
            items=[LowStockProduct.model_validate(p) for p in products],
            total=total,
            page=page,
            limit=limit,
        )

    async def get_ledger_balance(self, product_id: int) -> LedgerBalance:
        """Compare le compteur du produit à la somme de ses mouvements."""
        cached = await self.movement_repo.get_stock_level(product_id)
        if cached is None:
            raise ProductNotFoundException(product_id)
        ledger_total, movement_count = await self.movement_repo.sum_for_product(product_id)
        drift = cached - ledger_total
        if drift:
            logger.warning(f"[StockMovementService] Écart journal/compteur pour produit {product_id}: {drift}")
        return LedgerBalance(
            product_id=product_id,
            cached_quantity=cached,
            ledger_quantity=ledger_total,
            movement_count=movement_count,
            drift=drift,
        )
