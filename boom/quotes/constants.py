"""
Constantes du module devis.
"""

# --- Statuts ---
QUOTE_STATUS_DRAFT = "draft"
QUOTE_STATUS_SENT = "sent"
QUOTE_STATUS_ACCEPTED = "accepted"
QUOTE_STATUS_REJECTED = "rejected"
QUOTE_STATUS_EXPIRED = "expired"

QUOTE_STATUSES = [
    QUOTE_STATUS_DRAFT,
    QUOTE_STATUS_SENT,
    QUOTE_STATUS_ACCEPTED,
    QUOTE_STATUS_REJECTED,
    QUOTE_STATUS_EXPIRED,
]

# --- Numérotation ---
QUOTE_NUMBER_PREFIX = "DEV"
QUOTE_NUMBER_SUFFIX_LENGTH = 6
BASE36_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

# --- Messages d'erreur ---
ERROR_PRO_ONLY = "Seuls les comptes professionnels validés peuvent demander un devis."
ERROR_EMPTY_QUOTE = "Un devis doit contenir au moins un article."
ERROR_QUOTE_ACCESS_DENIED = "Accès refusé à ce devis."
ERROR_QUOTE_EXPIRED = "Ce devis a expiré."
