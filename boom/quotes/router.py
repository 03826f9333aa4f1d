import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status, Query, Path, Body, Response

from boom.auth.dependencies import CurrentUserDep, AdminUserDep
from boom.core.exceptions import (
    DomainException,
    ValidationException,
    AuthorizationException,
    NotFoundException,
    PreconditionException,
)
from boom.quotes.dependencies import QuoteServiceDep
from boom.quotes.pdf import render_quote_pdf
from boom.quotes.models import (
    QuoteRead,
    QuoteCreate,
    QuoteSend,
    QuoteItemsUpdate,
    PaginatedQuoteRead,
    OrderDraft,
)

logger = logging.getLogger(__name__)

# --- Création du Routeur ---
router = APIRouter()

def handle_quote_service_errors(e: Exception, context: str) -> HTTPException:
    """Traduit une exception du service devis en HTTPException."""
    if isinstance(e, ValidationException):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    if isinstance(e, AuthorizationException):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    if isinstance(e, NotFoundException):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, PreconditionException):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, DomainException):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    logger.error(f"Erreur API {context}: {e}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Erreur interne {context}.")

# --- Endpoints client ---

@router.post("/", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
async def create_new_quote(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_request: QuoteCreate
):
    """Crée un devis brouillon pour le compte pro validé authentifié."""
    logger.info(f"API create_quote pour user ID: {current_user.id}")
    try:
        return await quote_service.create_quote(quote_request, requesting_user=current_user)
    except Exception as e:
        raise handle_quote_service_errors(e, "création devis")

@router.get("/", response_model=PaginatedQuoteRead)
async def list_my_quotes(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    response: Response,
    limit: int = Query(20, ge=1, le=200, description="Nombre max de devis à retourner"),
    offset: int = Query(0, ge=0, description="Nombre de devis à sauter")
):
    """Liste les devis de l'utilisateur authentifié."""
    logger.info(f"API list_my_quotes pour user ID: {current_user.id}, limit={limit}, offset={offset}")
    try:
        paginated = await quote_service.list_user_quotes(user_id=current_user.id, limit=limit, offset=offset)
    except Exception as e:
        raise handle_quote_service_errors(e, "listage devis")
    end_range = offset + len(paginated.items) - 1 if paginated.items else offset
    response.headers["Content-Range"] = f"quotes {offset}-{end_range}/{paginated.total}"
    return paginated

@router.get("/admin/all", response_model=PaginatedQuoteRead)
async def list_all_quotes(
    quote_service: QuoteServiceDep,
    admin_user: AdminUserDep,
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    quote_status: Optional[str] = Query(None, alias="status", description="Filtrer par statut")
):
    """Liste tous les devis avec le client associé (admin)."""
    logger.info(f"API list_all_quotes par admin {admin_user.id}, status={quote_status}")
    try:
        return await quote_service.list_all_quotes(limit=limit, offset=offset, status=quote_status)
    except Exception as e:
        raise handle_quote_service_errors(e, "listage admin devis")

@router.get("/{quote_id}", response_model=QuoteRead)
async def read_quote(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int = Path(..., title="ID du devis", ge=1)
):
    """Récupère un devis (propriétaire ou admin)."""
    logger.info(f"API read_quote: ID={quote_id} par user {current_user.id}")
    try:
        return await quote_service.get_quote(quote_id, requesting_user=current_user)
    except Exception as e:
        raise handle_quote_service_errors(e, "récupération devis")

@router.get("/{quote_id}/pdf", response_class=Response)
async def download_quote_pdf(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int = Path(..., title="ID du devis", ge=1)
):
    """Télécharge le devis au format PDF (propriétaire ou admin)."""
    logger.info(f"API download_quote_pdf: ID={quote_id} par user {current_user.id}")
    try:
        quote = await quote_service.get_quote(quote_id, requesting_user=current_user)
        pdf_bytes = render_quote_pdf(quote)
    except Exception as e:
        raise handle_quote_service_errors(e, "génération PDF devis")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="devis-{quote.quote_number}.pdf"'},
    )

@router.post("/{quote_id}/accept", response_model=QuoteRead)
async def accept_quote(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int = Path(..., ge=1)
):
    """Accepte un devis envoyé (propriétaire uniquement)."""
    logger.info(f"API accept_quote: ID={quote_id} par user {current_user.id}")
    try:
        return await quote_service.accept_quote(quote_id, requesting_user=current_user)
    except Exception as e:
        raise handle_quote_service_errors(e, "acceptation devis")

@router.post("/{quote_id}/reject", response_model=QuoteRead)
async def reject_quote(
    quote_service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int = Path(..., ge=1)
):
    """Refuse un devis envoyé (propriétaire uniquement)."""
    logger.info(f"API reject_quote: ID={quote_id} par user {current_user.id}")
    try:
        return await quote_service.reject_quote(quote_id, requesting_user=current_user)
    except Exception as e:
        raise handle_quote_service_errors(e, "refus devis")

# --- Endpoints admin ---

@router.post("/{quote_id}/send", response_model=QuoteRead)
async def send_quote(
    quote_service: QuoteServiceDep,
    admin_user: AdminUserDep,
    quote_id: int = Path(..., ge=1),
    send_data: Optional[QuoteSend] = Body(None)
):
    """Envoie un devis brouillon au client (admin)."""
    logger.info(f"API send_quote: ID={quote_id} par admin {admin_user.id}")
    try:
        valid_days = send_data.valid_days if send_data else None
        return await quote_service.send_quote(quote_id, valid_days=valid_days)
    except Exception as e:
        raise handle_quote_service_errors(e, "envoi devis")

@router.put("/{quote_id}/items", response_model=QuoteRead)
async def update_quote_items(
    quote_service: QuoteServiceDep,
    admin_user: AdminUserDep,
    items_update: QuoteItemsUpdate,
    quote_id: int = Path(..., ge=1)
):
    """Remplace les lignes d'un devis brouillon (admin)."""
    logger.info(f"API update_quote_items: ID={quote_id} par admin {admin_user.id}")
    try:
        return await quote_service.update_quote_items(quote_id, items_update.items)
    except Exception as e:
        raise handle_quote_service_errors(e, "MAJ lignes devis")

@router.get("/{quote_id}/order-draft", response_model=OrderDraft)
async def get_order_draft(
    quote_service: QuoteServiceDep,
    admin_user: AdminUserDep,
    quote_id: int = Path(..., ge=1)
):
    """Données de commande dérivées d'un devis accepté (admin)."""
    logger.info(f"API order_draft: ID={quote_id} par admin {admin_user.id}")
    try:
        return await quote_service.build_order_draft(quote_id)
    except Exception as e:
        raise handle_quote_service_errors(e, "dérivation commande")

quotes_router = router
