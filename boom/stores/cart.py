"""
Panier persisté (clé de stockage `boom-cart`).

Invariant: 1 <= quantity <= stock_quantity pour chaque entrée; une entrée
dont la quantité tombe à 0 est retirée.
"""
import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel

from boom.pricing.calculator import cart_totals
from boom.pricing.models import CartTotals, OrderLine
from boom.stores.base import PersistedCollection

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "boom-cart"

class CartItem(BaseModel):
    product_id: int
    quantity: int
    name: str
    slug: str
    price_ttc: float
    price_ht: float
    image_url: Optional[str] = None
    stock_quantity: int

class CartStore(PersistedCollection[CartItem]):
    storage_key = CART_STORAGE_KEY
    entry_type = CartItem

    def entry_id(self, entry: CartItem) -> int:
        return entry.product_id

    def _normalize(self, entries: List[CartItem]) -> List[CartItem]:
        normalized = []
        for entry in entries:
            quantity = min(entry.quantity, entry.stock_quantity)
            if quantity > 0:
                normalized.append(entry.model_copy(update={"quantity": quantity}))
        return normalized

    def add(self, item: CartItem) -> None:
        """
        Ajoute un article. Si le produit est déjà présent, les quantités sont
        cumulées dans la limite du stock connu de l'entrée existante.
        """
        self._ensure_hydrated()
        index = self._index_of(item.product_id)
        items = self.items
        if index is not None:
            existing = items[index]
            quantity = min(existing.quantity + item.quantity, existing.stock_quantity)
            if quantity <= 0:
                del items[index]
            else:
                items[index] = existing.model_copy(update={"quantity": quantity})
        else:
            quantity = min(item.quantity, item.stock_quantity)
            if quantity <= 0:
                logger.debug(f"[CartStore] Ajout ignoré pour produit {item.product_id}: quantité {item.quantity}, stock {item.stock_quantity}")
                return
            items.append(item.model_copy(update={"quantity": quantity}))
        self._commit(items)

    def update_quantity(self, product_id: int, quantity: int) -> None:
        """Fixe la quantité (bornée au stock); une quantité <= 0 retire l'article."""
        self._ensure_hydrated()
        index = self._index_of(product_id)
        if index is None:
            return
        items = self.items
        clamped = min(quantity, items[index].stock_quantity)
        if clamped <= 0:
            del items[index]
        else:
            items[index] = items[index].model_copy(update={"quantity": clamped})
        self._commit(items)

    def set_items(self, items: Iterable[CartItem]) -> None:
        """Remplace le contenu (synchronisation avec le serveur)."""
        self._ensure_hydrated()
        self._commit(self._normalize(self._dedupe(items)))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    def totals(self) -> CartTotals:
        return cart_totals(self._items)

    def checkout_snapshot(self) -> List[OrderLine]:
        """Lignes de commande du panier, au même format que celles dérivées d'un devis."""
        return [
            OrderLine(product_id=item.product_id, quantity=item.quantity, unit_price_ht=item.price_ht)
            for item in self._items
        ]
