"""
Modèles du journal de stock (append-only).

`quantity` est le delta signé appliqué au stock: positif pour une entrée,
négatif pour une sortie, quelconque pour un ajustement.
"""
from typing import Optional, List
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from pydantic import ConfigDict

from boom.core.schemas import PaginatedResponse
from boom.core.utils import utcnow

# --- Modèle StockMovement SQLModel ---

class StockMovementBase(SQLModel):
    # Nullable: le mouvement survit à la suppression du produit
    product_id: Optional[int] = Field(default=None, foreign_key="products.id", index=True)
    quantity: int
    type: str = Field(max_length=20, index=True)
    reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None)

class StockMovement(StockMovementBase, table=True):
    __tablename__ = "stock_movements"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False, index=True)

# Schémas API pour StockMovement
class StockMovementRead(StockMovementBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class StockMovementWithProduct(StockMovementRead):
    product_name: str
    product_sku: str

class PaginatedStockMovementResponse(PaginatedResponse[StockMovementWithProduct]):
    pass

# --- Changements de stock (back-office) ---

class StockChangeRequest(SQLModel):
    """in/out: quantité à ajouter/retirer (> 0); adjustment: niveau absolu (>= 0)."""
    quantity: int = Field(..., ge=0)
    type: str
    notes: Optional[str] = None

class StockChangeResult(SQLModel):
    product_id: int
    previous_stock: int
    new_stock: int
    movement: StockMovementRead

class BulkStockUpdateLine(StockChangeRequest):
    product_id: int

class BulkStockUpdateRequest(SQLModel):
    updates: List[BulkStockUpdateLine]

class BulkStockUpdateResult(SQLModel):
    product_id: int
    success: bool
    new_stock: Optional[int] = None
    error: Optional[str] = None

# --- Statistiques ---

class StockStats(SQLModel):
    total_products: int
    low_stock_count: int
    out_of_stock_count: int
    total_movements_today: int

class LowStockProduct(SQLModel):
    id: int
    name: str
    sku: str
    stock_quantity: int
    stock_alert_threshold: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class PaginatedLowStockResponse(PaginatedResponse[LowStockProduct]):
    pass

class LedgerBalance(SQLModel):
    """Écart entre le compteur de stock du produit et la somme des mouvements."""
    product_id: int
    cached_quantity: int
    ledger_quantity: int
    movement_count: int
    drift: int
