from typing import Optional

from pydantic import BaseModel

class CartTotals(BaseModel):
    """Totaux du panier (HT/TTC), non arrondis."""
    item_count: int = 0
    subtotal_ht: float = 0.0
    subtotal_ttc: float = 0.0
    tax_amount: float = 0.0
    total_ttc: float = 0.0

class QuoteTotals(BaseModel):
    """Totaux d'un devis. total_ht est égal à subtotal_ht (aucune remise globale)."""
    subtotal_ht: float = 0.0
    discount_amount: float = 0.0
    tax_amount: float = 0.0
    total_ht: float = 0.0
    total_ttc: float = 0.0

class DisplayPrice(BaseModel):
    """Prix à afficher selon le profil client (HT pour les pros validés)."""
    price: float
    is_ht: bool
    discounted_price: Optional[float] = None
    has_discount: bool = False

class OrderLine(BaseModel):
    """Ligne transmise à la création de commande (prix unitaire HT net)."""
    product_id: int
    quantity: int
    unit_price_ht: float
