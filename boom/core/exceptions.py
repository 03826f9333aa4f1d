"""
Taxonomie commune des erreurs métier.

Chaque module (devis, stock, catalogue) dérive ses exceptions de ces classes
de base; les routeurs s'en servent pour choisir le code HTTP.
"""

class DomainException(Exception):
    """Classe de base pour les exceptions métier (message destiné à l'utilisateur)."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class ValidationException(DomainException):
    """Erreur de l'appelant: données invalides, rejetées avant toute écriture."""
    pass

class AuthorizationException(DomainException):
    """Accès refusé: non authentifié, mauvais rôle, compte pro non validé, non-propriétaire."""
    def __init__(self, message: str = "Accès refusé."):
        super().__init__(message)

class NotFoundException(DomainException):
    """La ressource référencée (produit, devis, mouvement) n'existe pas."""
    pass

class PreconditionException(DomainException):
    """Opération refusée car l'état courant ne la permet pas."""
    pass
