"""
Modèles SQLModel et schémas API du module devis.

Les lignes de devis figent le nom, la référence (SKU) et le prix HT du
produit au moment de la création: ils ne sont jamais recalculés depuis le
catalogue lors des lectures.
"""
from typing import Optional, List
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from pydantic import ConfigDict, computed_field

from boom.core.utils import utcnow
from boom.pricing.calculator import quote_line_total
from boom.pricing.models import OrderLine
from boom.quotes.constants import QUOTE_STATUS_DRAFT
from boom.users.models import CustomerSummary

# --- Modèles pour QuoteItem ---

class QuoteItemBase(SQLModel):
    """Modèle de base pour une ligne de devis (données communes)."""
    product_id: int = Field(foreign_key="products.id", index=True)
    product_name: str = Field(max_length=255)
    product_sku: str = Field(max_length=100)
    quantity: int = Field(..., gt=0)
    unit_price_ht: float = Field(..., ge=0)
    discount_rate: float = Field(default=0.0, ge=0, le=100)

class QuoteItem(QuoteItemBase, table=True):
    """Modèle de table pour une ligne de devis."""
    __tablename__ = "quote_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    quote_id: int = Field(foreign_key="quotes.id", index=True)

    quote: Optional["Quote"] = Relationship(back_populates="items")

class QuoteItemCreate(SQLModel):
    """Ligne demandée: le prix HT du catalogue est utilisé si unit_price_ht est absent."""
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price_ht: Optional[float] = Field(default=None, ge=0)
    discount_rate: Optional[float] = Field(default=None, ge=0, le=100)

class QuoteItemRead(QuoteItemBase):
    """Schéma pour lire une ligne de devis depuis l'API."""
    id: int
    quote_id: int

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def line_total_ht(self) -> float:
        return quote_line_total(self.unit_price_ht, self.quantity, self.discount_rate)

# --- Modèles pour Quote ---

class QuoteBase(SQLModel):
    """Modèle de base pour un devis."""
    user_id: int = Field(foreign_key="users.id", index=True)
    quote_number: str = Field(max_length=20, unique=True, index=True)
    status: str = Field(default=QUOTE_STATUS_DRAFT, max_length=20, index=True)
    valid_until: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    subtotal_ht: float = Field(default=0.0)
    discount_amount: float = Field(default=0.0)
    tax_rate: float = Field(default=20.0)
    tax_amount: float = Field(default=0.0)
    total_ht: float = Field(default=0.0)
    notes: Optional[str] = Field(default=None)

class Quote(QuoteBase, table=True):
    """Modèle de table pour un devis."""
    __tablename__ = "quotes"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)

    # Relations
    items: List["QuoteItem"] = Relationship(
        back_populates="quote",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "QuoteItem.id"},
    )

class QuoteCreate(SQLModel):
    """Schéma pour demander un devis via l'API (le propriétaire est l'utilisateur courant)."""
    items: List[QuoteItemCreate]
    notes: Optional[str] = None

class QuoteRead(QuoteBase):
    """Schéma pour lire un devis depuis l'API."""
    id: int
    created_at: datetime
    updated_at: datetime
    items: List[QuoteItemRead] = []
    total_ttc: float = 0.0
    # Dérivés à la lecture (expiration paresseuse)
    is_currently_valid: bool = False
    display_status: str = QUOTE_STATUS_DRAFT
    # Joint uniquement pour les lectures admin
    customer: Optional[CustomerSummary] = None

    model_config = ConfigDict(from_attributes=True)

class QuoteSend(SQLModel):
    """Envoi d'un devis au client par un admin."""
    valid_days: Optional[int] = Field(default=None, gt=0, le=365)

class QuoteItemsUpdate(SQLModel):
    """Remplacement des lignes d'un devis brouillon par un admin."""
    items: List[QuoteItemCreate]

class PaginatedQuoteRead(SQLModel):
    """Schéma pour une réponse paginée de devis."""
    items: List[QuoteRead]
    total: int

# --- Dérivation de commande ---

class OrderDraftItem(OrderLine):
    """Ligne de commande issue d'un devis; unit_price_ht a la remise de ligne déduite."""
    product_name: str
    product_sku: str

class OrderDraft(SQLModel):
    """Données nécessaires à la création d'une commande depuis un devis accepté."""
    quote_id: int
    quote_number: str
    user_id: int
    items: List[OrderDraftItem]
    total_ht: float
    tax_amount: float
    total_ttc: float
    notes: Optional[str] = None
