"""
Constantes du journal de stock.
"""

# --- Types de mouvement ---
MOVEMENT_TYPE_IN = "in"
MOVEMENT_TYPE_OUT = "out"
MOVEMENT_TYPE_ADJUSTMENT = "adjustment"
MOVEMENT_TYPES = [MOVEMENT_TYPE_IN, MOVEMENT_TYPE_OUT, MOVEMENT_TYPE_ADJUSTMENT]

# Référence des changements manuels du back-office
REFERENCE_ADMIN = "ADMIN"

# --- Libellés de repli pour un produit supprimé ---
DELETED_PRODUCT_NAME = "Produit supprimé"
DELETED_PRODUCT_SKU = "N/A"
