import secrets
from datetime import datetime
from typing import Optional

from boom.core.utils import utcnow, as_utc
from boom.quotes.constants import (
    BASE36_ALPHABET,
    QUOTE_NUMBER_PREFIX,
    QUOTE_NUMBER_SUFFIX_LENGTH,
    QUOTE_STATUS_SENT,
    QUOTE_STATUS_EXPIRED,
)

def generate_quote_number(now: Optional[datetime] = None) -> str:
    """Numéro de référence `DEV{AA}{MM}-{6 caractères base36}` (ex: DEV2410-K3Z9QA)."""
    now = now or utcnow()
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(QUOTE_NUMBER_SUFFIX_LENGTH))
    return f"{QUOTE_NUMBER_PREFIX}{now:%y%m}-{suffix}"

def is_quote_currently_valid(status: str, valid_until: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Un devis n'est acceptable que s'il est envoyé et non échu."""
    if status != QUOTE_STATUS_SENT:
        return False
    if valid_until is None:
        return True
    return as_utc(valid_until) > as_utc(now or utcnow())

def display_status(status: str, valid_until: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Statut à afficher: un devis 'sent' échu apparaît 'expired' même si la base dit encore 'sent'."""
    if status == QUOTE_STATUS_SENT and not is_quote_currently_valid(status, valid_until, now):
        return QUOTE_STATUS_EXPIRED
    return status
