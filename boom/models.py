"""
Enregistre toutes les tables SQLModel dans les métadonnées.

Importer ce module avant `SQLModel.metadata.create_all`.
"""
from boom.users.models import User  # noqa: F401
from boom.catalog.models import Product  # noqa: F401
from boom.quotes.models import Quote, QuoteItem  # noqa: F401
from boom.stock_movements.models import StockMovement  # noqa: F401
