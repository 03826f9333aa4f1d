import logging
from pathlib import Path
from typing import Optional

from boom.config import settings
from boom.stores.cart import CartStore
from boom.stores.comparison import ComparisonStore
from boom.stores.storage import AbstractStorage, JsonFileStorage

logger = logging.getLogger(__name__)

class StorefrontSession:
    """
    État client d'une session de navigation: un panier et un comparateur
    partageant le même stockage durable.
    """

    def __init__(self, storage: AbstractStorage):
        self.storage = storage
        self.cart = CartStore(storage)
        self.comparison = ComparisonStore(storage)

    @classmethod
    def from_directory(cls, directory: Optional[str] = None) -> "StorefrontSession":
        return cls(JsonFileStorage(Path(directory or settings.CLIENT_STORAGE_DIR)))

    @property
    def is_hydrated(self) -> bool:
        return self.cart.is_hydrated and self.comparison.is_hydrated

    def hydrate(self) -> None:
        self.cart.hydrate()
        self.comparison.hydrate()
        logger.info(f"[StorefrontSession] Session hydratée: {self.cart.item_count} article(s) au panier, {self.comparison.count} produit(s) comparé(s)")

    def teardown(self) -> None:
        self.cart.teardown()
        self.comparison.teardown()
