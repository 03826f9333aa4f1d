import logging
from datetime import timedelta
from typing import Dict, List, Optional

from boom.config import settings
from boom.core.utils import utcnow, as_utc
from boom.catalog.exceptions import ProductNotFoundException
from boom.catalog.interfaces.repositories import AbstractProductRepository
from boom.pricing.calculator import quote_totals, apply_discount
from boom.quotes.constants import (
    QUOTE_STATUS_DRAFT,
    QUOTE_STATUS_SENT,
    QUOTE_STATUS_ACCEPTED,
    QUOTE_STATUS_REJECTED,
    QUOTE_STATUS_EXPIRED,
    QUOTE_STATUSES,
    ERROR_PRO_ONLY,
    ERROR_EMPTY_QUOTE,
)
from boom.quotes.exceptions import (
    QuoteNotFoundException,
    QuoteAccessDeniedException,
    InvalidQuoteStatusException,
    QuoteExpiredException,
    InvalidQuoteDataException,
    QuoteCreationFailedException,
)
from boom.quotes.interfaces.repositories import AbstractQuoteRepository
from boom.quotes.models import (
    Quote,
    QuoteItem,
    QuoteCreate,
    QuoteItemCreate,
    QuoteRead,
    QuoteItemRead,
    PaginatedQuoteRead,
    OrderDraft,
    OrderDraftItem,
)
from boom.quotes.repositories import DuplicateQuoteNumberException
from boom.quotes.utils import generate_quote_number, is_quote_currently_valid, display_status
from boom.users.models import UserRead, CustomerSummary, ROLE_PRO
from boom.users.repositories import UserRepository

logger = logging.getLogger(__name__)

class QuoteService:
    """Service applicatif pour le cycle de vie des devis, utilisant le pattern Repository."""

    def __init__(self,
                 quote_repo: AbstractQuoteRepository,
                 product_repo: AbstractProductRepository,
                 user_repo: UserRepository):
        """Initialise le service avec les repositories requis."""
        self.quote_repo = quote_repo
        self.product_repo = product_repo
        self.user_repo = user_repo

    # --- Helpers ---
    def _map_quote_to_read(self, quote_db: Quote, customer: Optional[CustomerSummary] = None) -> QuoteRead:
        """Mappe un Quote de la DB vers QuoteRead et calcule les champs dérivés à l'instant de lecture."""
        now = utcnow()
        quote_read = QuoteRead.model_validate(quote_db)
        quote_read.items = [QuoteItemRead.model_validate(item) for item in quote_db.items]
        quote_read.total_ttc = quote_db.total_ht + quote_db.tax_amount
        quote_read.is_currently_valid = is_quote_currently_valid(quote_db.status, quote_db.valid_until, now)
        quote_read.display_status = display_status(quote_db.status, quote_db.valid_until, now)
        quote_read.customer = customer
        return quote_read

    async def _get_quote_or_404(self, quote_id: int) -> Quote:
        quote_db = await self.quote_repo.get_by_id_with_items(quote_id=quote_id)
        if not quote_db:
            logger.warning(f"[QuoteService] Devis ID {quote_id} non trouvé.")
            raise QuoteNotFoundException(quote_id)
        return quote_db

    async def _get_owned_quote(self, quote_id: int, requesting_user: UserRead) -> Quote:
        quote_db = await self._get_quote_or_404(quote_id)
        if quote_db.user_id != requesting_user.id:
            logger.warning(f"[QuoteService] Accès refusé devis {quote_id} pour user {requesting_user.id} (non propriétaire).")
            raise QuoteAccessDeniedException()
        return quote_db

    async def _build_items(self, items_in: List[QuoteItemCreate]) -> List[QuoteItem]:
        """Résout chaque produit dans le catalogue actif et fige nom, SKU et prix HT."""
        if not items_in:
            raise InvalidQuoteDataException(ERROR_EMPTY_QUOTE)

        products = await self.product_repo.get_active_products(item.product_id for item in items_in)
        items: List[QuoteItem] = []
        for item_in in items_in:
            product = products.get(item_in.product_id)
            if product is None:
                logger.warning(f"[QuoteService] Produit ID {item_in.product_id} introuvable ou inactif.")
                raise ProductNotFoundException(item_in.product_id)

            unit_price_ht = item_in.unit_price_ht if item_in.unit_price_ht is not None else product.price_ht
            items.append(QuoteItem(
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                quantity=item_in.quantity,
                unit_price_ht=unit_price_ht,
                discount_rate=item_in.discount_rate or 0.0,
            ))
        return items

    # --- Lecture ---

    async def get_quote(self, quote_id: int, requesting_user: UserRead) -> QuoteRead:
        """Récupère un devis (propriétaire ou admin). Les lectures admin joignent le client."""
        logger.debug(f"[QuoteService] Récupération devis ID: {quote_id} pour user: {requesting_user.id} (admin: {requesting_user.is_admin})")
        quote_db = await self._get_quote_or_404(quote_id)

        if requesting_user.is_admin:
            summaries = await self.user_repo.get_customer_summaries([quote_db.user_id])
            return self._map_quote_to_read(quote_db, customer=summaries.get(quote_db.user_id))

        if quote_db.user_id != requesting_user.id:
            logger.warning(f"[QuoteService] Accès refusé devis {quote_id} pour user {requesting_user.id}.")
            raise QuoteAccessDeniedException()
        return self._map_quote_to_read(quote_db)

    async def list_user_quotes(self, user_id: int, limit: int, offset: int) -> PaginatedQuoteRead:
        """Liste les devis d'un utilisateur, du plus récent au plus ancien."""
        logger.debug(f"[QuoteService] Listage devis pour user ID: {user_id}, limit: {limit}, offset: {offset}")
        quotes_db, total_count = await self.quote_repo.list_by_user_id(user_id=user_id, limit=limit, offset=offset)
        return PaginatedQuoteRead(items=[self._map_quote_to_read(q) for q in quotes_db], total=total_count)

    async def list_all_quotes(self, limit: int, offset: int, status: Optional[str] = None) -> PaginatedQuoteRead:
        """Liste tous les devis (admin) avec le résumé client."""
        if status is not None and status not in QUOTE_STATUSES:
            raise InvalidQuoteDataException(f"Statut de devis inconnu: '{status}'.")
        logger.debug(f"[QuoteService] Listage admin devis: status={status}, limit={limit}, offset={offset}")
        quotes_db, total_count = await self.quote_repo.list_all(limit=limit, offset=offset, status=status)
        summaries: Dict[int, CustomerSummary] = await self.user_repo.get_customer_summaries(q.user_id for q in quotes_db)
        return PaginatedQuoteRead(
            items=[self._map_quote_to_read(q, customer=summaries.get(q.user_id)) for q in quotes_db],
            total=total_count,
        )

    # --- Création ---

    async def create_quote(self, quote_data: QuoteCreate, requesting_user: UserRead) -> QuoteRead:
        """
        Crée un devis brouillon pour un compte pro validé.

        Les produits doivent tous être actifs; l'en-tête et les lignes sont
        écrits dans une seule transaction. En cas de collision sur le numéro
        de devis, la création est retentée avec un nouveau numéro.
        """
        logger.info(f"[QuoteService] Tentative création devis pour user ID: {requesting_user.id}")
        if requesting_user.role != ROLE_PRO or not requesting_user.is_validated:
            logger.warning(f"[QuoteService] Création refusée pour user {requesting_user.id} (rôle: {requesting_user.role}, validé: {requesting_user.is_validated}).")
            raise QuoteAccessDeniedException(ERROR_PRO_ONLY)

        if not quote_data.items:
            raise InvalidQuoteDataException(ERROR_EMPTY_QUOTE)

        # Validation du catalogue avant toute écriture
        resolved_items = await self._build_items(quote_data.items)
        tax_rate = settings.DEFAULT_TAX_RATE
        totals = quote_totals(resolved_items, tax_rate=tax_rate)

        for attempt in range(1, settings.QUOTE_NUMBER_MAX_ATTEMPTS + 1):
            quote_number = generate_quote_number()
            if await self.quote_repo.quote_number_exists(quote_number=quote_number):
                logger.info(f"[QuoteService] Numéro {quote_number} déjà pris (tentative {attempt}).")
                continue

            # Objets neufs à chaque tentative: un rollback détache les précédents
            items = [QuoteItem(**item.model_dump(exclude={"id", "quote_id"})) for item in resolved_items]
            quote = Quote(
                user_id=requesting_user.id,
                quote_number=quote_number,
                status=QUOTE_STATUS_DRAFT,
                subtotal_ht=totals.subtotal_ht,
                discount_amount=totals.discount_amount,
                tax_rate=tax_rate,
                tax_amount=totals.tax_amount,
                total_ht=totals.total_ht,
                notes=quote_data.notes,
            )
            try:
                created_quote = await self.quote_repo.create_with_items(quote=quote, items=items)
            except DuplicateQuoteNumberException:
                logger.info(f"[QuoteService] Collision sur le numéro {quote_number} (tentative {attempt}), nouvel essai.")
                continue

            logger.info(f"[QuoteService] Devis {created_quote.quote_number} (ID {created_quote.id}) créé pour user {requesting_user.id}.")
            return self._map_quote_to_read(created_quote)

        logger.error(f"[QuoteService] Aucun numéro de devis libre après {settings.QUOTE_NUMBER_MAX_ATTEMPTS} tentatives.")
        raise QuoteCreationFailedException("Impossible d'attribuer un numéro de devis unique.")

    # --- Transitions client ---

    async def accept_quote(self, quote_id: int, requesting_user: UserRead) -> QuoteRead:
        """
        Accepte un devis envoyé. Si sa validité est échue, le devis passe en
        'expired' et l'acceptation échoue.
        """
        logger.info(f"[QuoteService] Tentative acceptation devis ID: {quote_id} par user {requesting_user.id}")
        quote_db = await self._get_owned_quote(quote_id, requesting_user)

        if quote_db.status != QUOTE_STATUS_SENT:
            raise InvalidQuoteStatusException(quote_id, quote_db.status, [QUOTE_STATUS_SENT], "accepté")

        now = utcnow()
        if quote_db.valid_until is not None and as_utc(quote_db.valid_until) <= now:
            expired = await self.quote_repo.transition_status(
                quote_id=quote_id, expected_status=QUOTE_STATUS_SENT, new_status=QUOTE_STATUS_EXPIRED
            )
            if expired:
                logger.info(f"[QuoteService] Devis {quote_id} expiré lors d'une tentative d'acceptation.")
            raise QuoteExpiredException(quote_id)

        accepted = await self.quote_repo.transition_status(
            quote_id=quote_id,
            expected_status=QUOTE_STATUS_SENT,
            new_status=QUOTE_STATUS_ACCEPTED,
            valid_after=now,
        )
        if not accepted:
            # Modifié entre la lecture et la mise à jour conditionnelle
            current = await self._get_quote_or_404(quote_id)
            logger.warning(f"[QuoteService] Acceptation devis {quote_id} refusée, statut courant '{current.status}'.")
            if current.status == QUOTE_STATUS_SENT:
                raise QuoteExpiredException(quote_id)
            raise InvalidQuoteStatusException(quote_id, current.status, [QUOTE_STATUS_SENT], "accepté")

        logger.info(f"[QuoteService] Devis {quote_id} accepté par user {requesting_user.id}.")
        return self._map_quote_to_read(await self._get_quote_or_404(quote_id))

    async def reject_quote(self, quote_id: int, requesting_user: UserRead) -> QuoteRead:
        """Refuse un devis envoyé (propriétaire uniquement)."""
        logger.info(f"[QuoteService] Tentative refus devis ID: {quote_id} par user {requesting_user.id}")
        quote_db = await self._get_owned_quote(quote_id, requesting_user)

        if quote_db.status != QUOTE_STATUS_SENT:
            raise InvalidQuoteStatusException(quote_id, quote_db.status, [QUOTE_STATUS_SENT], "refusé")

        rejected = await self.quote_repo.transition_status(
            quote_id=quote_id, expected_status=QUOTE_STATUS_SENT, new_status=QUOTE_STATUS_REJECTED
        )
        if not rejected:
            current = await self._get_quote_or_404(quote_id)
            raise InvalidQuoteStatusException(quote_id, current.status, [QUOTE_STATUS_SENT], "refusé")

        logger.info(f"[QuoteService] Devis {quote_id} refusé par user {requesting_user.id}.")
        return self._map_quote_to_read(await self._get_quote_or_404(quote_id))

    # --- Opérations admin ---

    async def send_quote(self, quote_id: int, valid_days: Optional[int] = None) -> QuoteRead:
        """Envoie un devis brouillon au client et fixe sa date de validité."""
        days = valid_days or settings.DEFAULT_QUOTE_VALIDITY_DAYS
        logger.info(f"[QuoteService] Envoi devis ID: {quote_id} (validité {days} jours)")
        quote_db = await self._get_quote_or_404(quote_id)
        if quote_db.status != QUOTE_STATUS_DRAFT:
            raise InvalidQuoteStatusException(quote_id, quote_db.status, [QUOTE_STATUS_DRAFT], "envoyé")

        sent = await self.quote_repo.transition_status(
            quote_id=quote_id,
            expected_status=QUOTE_STATUS_DRAFT,
            new_status=QUOTE_STATUS_SENT,
            values={"valid_until": utcnow() + timedelta(days=days)},
        )
        if not sent:
            current = await self._get_quote_or_404(quote_id)
            raise InvalidQuoteStatusException(quote_id, current.status, [QUOTE_STATUS_DRAFT], "envoyé")

        return self._map_quote_to_read(await self._get_quote_or_404(quote_id))

    async def update_quote_items(self, quote_id: int, items_in: List[QuoteItemCreate]) -> QuoteRead:
        """Remplace les lignes d'un devis brouillon et recalcule ses totaux."""
        logger.info(f"[QuoteService] MAJ lignes devis ID: {quote_id} ({len(items_in)} ligne(s))")
        quote_db = await self._get_quote_or_404(quote_id)
        if quote_db.status != QUOTE_STATUS_DRAFT:
            raise InvalidQuoteStatusException(quote_id, quote_db.status, [QUOTE_STATUS_DRAFT], "modifié")

        items = await self._build_items(items_in)
        totals = quote_totals(items, tax_rate=quote_db.tax_rate)
        replaced = await self.quote_repo.replace_items(
            quote_id=quote_id,
            expected_status=QUOTE_STATUS_DRAFT,
            items=items,
            totals={
                "subtotal_ht": totals.subtotal_ht,
                "discount_amount": totals.discount_amount,
                "tax_amount": totals.tax_amount,
                "total_ht": totals.total_ht,
            },
        )
        if not replaced:
            current = await self._get_quote_or_404(quote_id)
            raise InvalidQuoteStatusException(quote_id, current.status, [QUOTE_STATUS_DRAFT], "modifié")

        return self._map_quote_to_read(await self._get_quote_or_404(quote_id))

    async def build_order_draft(self, quote_id: int) -> OrderDraft:
        """Prépare les données de commande d'un devis accepté (remises de ligne appliquées)."""
        quote_db = await self._get_quote_or_404(quote_id)
        if quote_db.status != QUOTE_STATUS_ACCEPTED:
            raise InvalidQuoteStatusException(quote_id, quote_db.status, [QUOTE_STATUS_ACCEPTED], "converti en commande")

        return OrderDraft(
            quote_id=quote_db.id,
            quote_number=quote_db.quote_number,
            user_id=quote_db.user_id,
            items=[
                OrderDraftItem(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    product_sku=item.product_sku,
                    quantity=item.quantity,
                    unit_price_ht=apply_discount(item.unit_price_ht, item.discount_rate),
                )
                for item in quote_db.items
            ],
            total_ht=quote_db.total_ht,
            tax_amount=quote_db.tax_amount,
            total_ttc=quote_db.total_ht + quote_db.tax_amount,
            notes=f"Créée depuis le devis {quote_db.quote_number}",
        )
