from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from boom.catalog.models import Product

class AbstractProductRepository(ABC):
    """Interface abstraite de consultation du catalogue."""

    @abstractmethod
    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        """Retourne le produit s'il existe et est actif, sinon None."""
        pass

    @abstractmethod
    async def get_active_products(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Retourne les produits actifs indexés par ID (les absents sont omis)."""
        pass

    @abstractmethod
    async def get_any_by_ids(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Retourne les produits par ID, actifs ou non (affichage back-office)."""
        pass
