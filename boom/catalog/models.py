"""
Modèles SQLModel du catalogue produits.

Le catalogue est un collaborateur en lecture seule pour les devis: seuls les
produits actifs sont visibles. Le compteur `stock_quantity` est écrit
exclusivement par le module stock_movements.
"""
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from boom.core.utils import utcnow

class ProductBase(SQLModel):
    name: str = Field(max_length=255, nullable=False)
    slug: str = Field(max_length=255, unique=True, index=True, nullable=False)
    sku: str = Field(max_length=100, unique=True, index=True, nullable=False)
    price_ht: float = Field(ge=0, nullable=False)
    tax_rate: float = Field(default=20.0, ge=0)
    price_ttc: float = Field(ge=0, nullable=False)
    stock_quantity: int = Field(default=0, nullable=False)
    stock_alert_threshold: Optional[int] = Field(default=5)
    is_active: bool = Field(default=True, nullable=False)

class Product(ProductBase, table=True):
    __tablename__ = "products"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
