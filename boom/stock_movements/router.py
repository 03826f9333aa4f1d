import logging
from typing import List, Literal

from fastapi import APIRouter, HTTPException, status, Query, Path

from boom.auth.dependencies import AdminUserDep
from boom.core.exceptions import (
    DomainException,
    NotFoundException,
    PreconditionException,
)
from .dependencies import StockMovementServiceDep
from .models import (
    StockMovementRead,
    PaginatedStockMovementResponse,
    PaginatedLowStockResponse,
    StockChangeRequest,
    StockChangeResult,
    BulkStockUpdateRequest,
    BulkStockUpdateResult,
    StockStats,
    LedgerBalance,
)

logger = logging.getLogger(__name__)

router = APIRouter()

def handle_stock_service_errors(e: Exception, context: str) -> HTTPException:
    """Traduit une exception du service de stock en HTTPException."""
    if isinstance(e, NotFoundException):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, PreconditionException):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, DomainException):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    logger.error(f"Erreur API {context}: {e}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Erreur interne {context}.")

@router.get("/", response_model=PaginatedStockMovementResponse)
async def list_recent_movements(
    service: StockMovementServiceDep,
    admin_user: AdminUserDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    movement_type: Literal["all", "in", "out", "adjustment"] = Query("all", alias="type")
):
    """Liste les mouvements de stock récents (tous produits)."""
    try:
        return await service.list_recent_movements(
            page=page,
            limit=limit,
            movement_type=None if movement_type == "all" else movement_type,
        )
    except Exception as e:
        raise handle_stock_service_errors(e, "listage mouvements")

@router.get("/stats", response_model=StockStats)
async def get_stock_stats(service: StockMovementServiceDep, admin_user: AdminUserDep):
    try:
        return await service.get_stock_stats()
    except Exception as e:
        raise handle_stock_service_errors(e, "statistiques stock")

@router.get("/low-stock", response_model=PaginatedLowStockResponse)
async def list_low_stock_products(
    service: StockMovementServiceDep,
    admin_user: AdminUserDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=200),
    include_out_of_stock: bool = Query(True)
):
    """Produits actifs dont le stock est sous leur seuil d'alerte."""
    try:
        return await service.list_low_stock_products(page=page, limit=limit, include_out_of_stock=include_out_of_stock)
    except Exception as e:
        raise handle_stock_service_errors(e, "listage stock bas")

@router.get("/products/{product_id}", response_model=List[StockMovementRead])
async def get_product_history(
    service: StockMovementServiceDep,
    admin_user: AdminUserDep,
    product_id: int = Path(..., ge=1),
    limit: int = Query(50, ge=1, le=500)
):
    """Historique des mouvements d'un produit (plus récents d'abord)."""
    try:
        return await service.history(product_id, limit=limit)
    except Exception as e:
        raise handle_stock_service_errors(e, "historique stock")

@router.get("/products/{product_id}/balance", response_model=LedgerBalance)
async def get_ledger_balance(
    service: StockMovementServiceDep,
    admin_user: AdminUserDep,
    product_id: int = Path(..., ge=1)
):
    try:
        return await service.get_ledger_balance(product_id)
    except Exception as e:
        raise handle_stock_service_errors(e, "contrôle stock")

@router.post("/products/{product_id}", response_model=StockChangeResult, status_code=status.HTTP_201_CREATED)
async def apply_stock_change(
    service: StockMovementServiceDep,
    admin_user: AdminUserDep,
    change: StockChangeRequest,
    product_id: int = Path(..., ge=1)
):
    """Entrée, sortie ou ajustement manuel du stock d'un produit."""
    logger.info(f"API apply_stock_change: produit={product_id}, type={change.type}, quantité={change.quantity} par admin {admin_user.id}")
    try:
        return await service.apply_stock_change(
            product_id=product_id,
            quantity=change.quantity,
            movement_type=change.type,
            notes=change.notes,
        )
    except Exception as e:
        raise handle_stock_service_errors(e, "changement stock")

@router.post("/bulk", response_model=List[BulkStockUpdateResult])
async def bulk_update_stock(
    service: StockMovementServiceDep,
    admin_user: AdminUserDep,
    bulk_request: BulkStockUpdateRequest
):
    logger.info(f"API bulk_update_stock: {len(bulk_request.updates)} ligne(s) par admin {admin_user.id}")
    try:
        return await service.bulk_update_stock(bulk_request.updates)
    except Exception as e:
        raise handle_stock_service_errors(e, "mise à jour groupée")

stock_movements_router = router
