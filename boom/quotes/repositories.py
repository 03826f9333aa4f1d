import logging
from datetime import datetime
from typing import Optional, List, Tuple, Dict, Any

from sqlalchemy import update, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from fastcrud import FastCRUD

from boom.core.utils import utcnow
from boom.quotes.models import Quote, QuoteItem
from boom.quotes.interfaces.repositories import AbstractQuoteRepository
from boom.quotes.exceptions import QuoteCreationFailedException

logger = logging.getLogger(__name__)

class DuplicateQuoteNumberException(Exception):
    """Conflit d'unicité sur le numéro de devis (la création peut être retentée)."""
    def __init__(self, quote_number: str):
        super().__init__(f"Numéro de devis déjà utilisé: {quote_number}")
        self.quote_number = quote_number

class SQLAlchemyQuoteRepository(AbstractQuoteRepository):
    """Implémentation SQLAlchemy du repository des devis."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        # FastCRUD pour les comptages paginés
        self.crud = FastCRUD(Quote)

    async def get_by_id_with_items(self, *, quote_id: int) -> Optional[Quote]:
        """Récupère un devis par son ID, incluant ses lignes."""
        statement = (
            select(Quote)
            .where(Quote.id == quote_id)
            .options(selectinload(Quote.items))
            # Les transitions passent par des UPDATE directs: relire l'état en base
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(statement)
        return result.scalars().one_or_none()

    async def _list(self, *, offset: int, limit: int, filters: Dict[str, Any]) -> Tuple[List[Quote], int]:
        statement = select(Quote).options(selectinload(Quote.items))
        for column, value in filters.items():
            statement = statement.where(getattr(Quote, column) == value)
        statement = statement.order_by(Quote.created_at.desc(), Quote.id.desc()).offset(offset).limit(limit)
        try:
            result = await self.db.execute(statement)
            total = await self.crud.count(self.db, **filters)
        except SQLAlchemyError as e:
            logger.error(f"[QuoteRepository] Erreur DB listage devis ({filters}): {e}", exc_info=True)
            raise
        return list(result.scalars().all()), total

    async def list_by_user_id(self, *, user_id: int, offset: int = 0, limit: int = 100) -> Tuple[List[Quote], int]:
        return await self._list(offset=offset, limit=limit, filters={"user_id": user_id})

    async def list_all(self, *, offset: int = 0, limit: int = 100, status: Optional[str] = None) -> Tuple[List[Quote], int]:
        filters = {"status": status} if status else {}
        return await self._list(offset=offset, limit=limit, filters=filters)

    async def quote_number_exists(self, *, quote_number: str) -> bool:
        return await self.crud.exists(self.db, quote_number=quote_number)

    async def create_with_items(self, *, quote: Quote, items: List[QuoteItem]) -> Quote:
        """Crée un devis et ses lignes en un seul commit (rollback complet en cas d'échec)."""
        try:
            quote.items = items
            self.db.add(quote)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if "quote_number" in str(e.orig):
                logger.warning(f"[QuoteRepository] Conflit sur le numéro {quote.quote_number}")
                raise DuplicateQuoteNumberException(quote.quote_number)
            logger.error(f"[QuoteRepository] Erreur d'intégrité création devis: {e}", exc_info=True)
            raise QuoteCreationFailedException(f"Erreur d'intégrité: {e.orig}")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[QuoteRepository] Erreur DB création devis: {e}", exc_info=True)
            raise QuoteCreationFailedException(f"Erreur base de données: {e}")

        loaded_quote = await self.get_by_id_with_items(quote_id=quote.id)
        if loaded_quote is None:
            raise QuoteCreationFailedException("Impossible de relire le devis après création.")
        return loaded_quote

    async def transition_status(
        self,
        *,
        quote_id: int,
        expected_status: str,
        new_status: str,
        valid_after: Optional[datetime] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> bool:
        statement = update(Quote).where(Quote.id == quote_id, Quote.status == expected_status)
        if valid_after is not None:
            statement = statement.where(or_(Quote.valid_until.is_(None), Quote.valid_until > valid_after))
        statement = (
            statement.values(status=new_status, updated_at=utcnow(), **(values or {}))
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(statement)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[QuoteRepository] Erreur DB transition devis {quote_id} {expected_status}->{new_status}: {e}", exc_info=True)
            raise
        return result.rowcount == 1

    async def replace_items(
        self,
        *,
        quote_id: int,
        expected_status: str,
        items: List[QuoteItem],
        totals: Dict[str, Any],
    ) -> bool:
        try:
            result = await self.db.execute(
                update(Quote)
                .where(Quote.id == quote_id, Quote.status == expected_status)
                .values(updated_at=utcnow(), **totals)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                return False

            # Suppression via l'ORM pour retirer les anciennes lignes de l'identity map
            existing = await self.db.execute(select(QuoteItem).where(QuoteItem.quote_id == quote_id))
            for old_item in existing.scalars().all():
                await self.db.delete(old_item)
            await self.db.flush()

            for item in items:
                item.quote_id = quote_id
                self.db.add(item)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[QuoteRepository] Erreur DB remplacement lignes devis {quote_id}: {e}", exc_info=True)
            raise
        return True
