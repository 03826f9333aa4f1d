"""Exceptions spécifiques au module Quote."""

from typing import List, Optional

from boom.core.exceptions import (
    AuthorizationException,
    NotFoundException,
    PreconditionException,
    ValidationException,
)
from boom.quotes.constants import ERROR_QUOTE_ACCESS_DENIED, ERROR_QUOTE_EXPIRED

class QuoteNotFoundException(NotFoundException):
    """Levée lorsqu'un devis spécifique n'est pas trouvé."""
    def __init__(self, quote_id: int):
        super().__init__(f"Devis avec ID {quote_id} non trouvé.")
        self.quote_id = quote_id

class QuoteAccessDeniedException(AuthorizationException):
    """Levée lorsque l'utilisateur n'est ni propriétaire ni admin."""
    def __init__(self, message: str = ERROR_QUOTE_ACCESS_DENIED):
        super().__init__(message)

class InvalidQuoteStatusException(PreconditionException):
    """Levée lorsque le statut courant du devis ne permet pas la transition demandée."""
    def __init__(self, quote_id: int, current: Optional[str], expected: List[str], action: str):
        expected_str = ", ".join(expected)
        super().__init__(
            f"Le devis {quote_id} ne peut pas être {action}: statut '{current}' (attendu: {expected_str})."
        )
        self.quote_id = quote_id
        self.current = current
        self.expected = expected

class QuoteExpiredException(PreconditionException):
    """Levée lorsqu'un devis envoyé a dépassé sa date de validité."""
    def __init__(self, quote_id: int):
        super().__init__(ERROR_QUOTE_EXPIRED)
        self.quote_id = quote_id

class InvalidQuoteDataException(ValidationException):
    """Levée lorsque les données d'un devis sont invalides (liste vide, quantité...)."""
    pass

class QuoteCreationFailedException(Exception):
    """Levée en cas d'erreur technique lors de la création d'un devis."""
    def __init__(self, detail: str = "Erreur lors de la création du devis."):
        super().__init__(detail)
        self.message = detail
        self.detail = detail

class QuotePdfGenerationException(Exception):
    """Levée lorsque ReportLab échoue à construire le PDF d'un devis."""
    def __init__(self, detail: str, original_exception: Exception = None):
        super().__init__(detail)
        self.message = detail
        self.original_exception = original_exception
