"""Exceptions spécifiques au catalogue."""
from boom.core.exceptions import NotFoundException

class ProductNotFoundException(NotFoundException):
    """Levée lorsqu'un produit est introuvable ou inactif."""
    def __init__(self, product_id: int):
        super().__init__(f"Produit avec ID {product_id} non trouvé ou inactif.")
        self.product_id = product_id
