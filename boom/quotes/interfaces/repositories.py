from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Tuple, Dict, Any

from boom.quotes.models import Quote, QuoteItem


class AbstractQuoteRepository(ABC):
    """Interface abstraite pour le repository des devis."""

    @abstractmethod
    async def get_by_id_with_items(self, *, quote_id: int) -> Optional[Quote]:
        """Récupère un devis par son ID, incluant ses lignes (relu depuis la base)."""
        pass

    @abstractmethod
    async def list_by_user_id(self, *, user_id: int, offset: int = 0, limit: int = 100) -> Tuple[List[Quote], int]:
        """Liste les devis d'un utilisateur, du plus récent au plus ancien."""
        pass

    @abstractmethod
    async def list_all(self, *, offset: int = 0, limit: int = 100, status: Optional[str] = None) -> Tuple[List[Quote], int]:
        """Liste tous les devis (admin), filtrables par statut."""
        pass

    @abstractmethod
    async def quote_number_exists(self, *, quote_number: str) -> bool:
        pass

    @abstractmethod
    async def create_with_items(self, *, quote: Quote, items: List[QuoteItem]) -> Quote:
        """Insère l'en-tête et les lignes dans une seule transaction."""
        pass

    @abstractmethod
    async def transition_status(
        self,
        *,
        quote_id: int,
        expected_status: str,
        new_status: str,
        valid_after: Optional[datetime] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Transition conditionnelle (compare-and-swap) sur le statut.

        Si `valid_after` est fourni, la mise à jour exige en plus que
        valid_until soit nul ou postérieur à cette date.
        Retourne False si aucune ligne n'a été modifiée.
        """
        pass

    @abstractmethod
    async def replace_items(
        self,
        *,
        quote_id: int,
        expected_status: str,
        items: List[QuoteItem],
        totals: Dict[str, Any],
    ) -> bool:
        """Remplace les lignes et les totaux si le statut est toujours celui attendu."""
        pass
