"""Comparateur de produits persisté (clé `boom-comparison`, 4 produits maximum)."""
import logging
from typing import Optional

from pydantic import BaseModel

from boom.config import settings
from boom.stores.base import PersistedCollection
from boom.stores.storage import AbstractStorage

logger = logging.getLogger(__name__)

COMPARISON_STORAGE_KEY = "boom-comparison"

class ComparisonProduct(BaseModel):
    id: int
    name: str
    slug: str
    price_ttc: float
    price_ht: float
    image_url: Optional[str] = None
    brand_name: Optional[str] = None

class ComparisonStore(PersistedCollection[ComparisonProduct]):
    storage_key = COMPARISON_STORAGE_KEY
    entry_type = ComparisonProduct

    def __init__(self, storage: AbstractStorage, max_items: Optional[int] = None, storage_key: Optional[str] = None):
        super().__init__(storage, storage_key=storage_key)
        self._max_items = max_items if max_items is not None else settings.COMPARISON_MAX_ITEMS

    def entry_id(self, entry: ComparisonProduct) -> int:
        return entry.id

    def _normalize(self, entries):
        return entries[:self._max_items]

    @property
    def max_items(self) -> int:
        return self._max_items

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self._max_items

    def add(self, product: ComparisonProduct) -> bool:
        """Ajoute un produit. Retourne False (sans effet) s'il est déjà présent ou si le comparateur est plein."""
        self._ensure_hydrated()
        if self.contains(product.id):
            return False
        if self.is_full:
            logger.debug(f"[ComparisonStore] Comparateur plein, produit {product.id} ignoré")
            return False
        self._commit(self.items + [product])
        return True

    def toggle(self, product: ComparisonProduct) -> bool:
        """Retire le produit s'il est présent (False), sinon tente l'ajout."""
        self._ensure_hydrated()
        if self.contains(product.id):
            self.remove(product.id)
            return False
        return self.add(product)
