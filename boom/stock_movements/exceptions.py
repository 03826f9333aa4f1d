from typing import Optional

from boom.core.exceptions import ValidationException, PreconditionException

class InvalidStockMovementOperationException(ValidationException):
    """Exception pour des opérations invalides sur les mouvements de stock (type, signe, quantité)."""
    pass

class NegativeStockException(ValidationException):
    """Levée lorsqu'un changement amènerait le stock sous zéro."""
    def __init__(self, product_id: int, current: int, requested: int):
        super().__init__(
            f"Le stock ne peut pas être négatif (produit {product_id}: stock {current}, résultat {requested})."
        )
        self.product_id = product_id

class StockConflictException(PreconditionException):
    """Le stock du produit a été modifié par une autre opération pendant le changement."""
    def __init__(self, product_id: int, message: Optional[str] = None):
        super().__init__(message or f"Le stock du produit {product_id} a été modifié entre-temps, veuillez réessayer.")
        self.product_id = product_id
