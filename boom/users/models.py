"""
Module définissant les modèles SQLModel pour l'entité User.

Ce module contient :
- UserBase : Classe SQLModel de base avec les champs communs.
- User : Modèle de table SQLModel (table=True) héritant de UserBase.
- UserRead, CustomerSummary : Schémas pour l'API.

L'émission des comptes (inscription, validation pro) est hors périmètre:
ce module ne fournit que l'identité consommée par les devis et le stock.
"""
from typing import Optional
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from pydantic import ConfigDict

from boom.core.utils import utcnow

# Rôles possibles
ROLE_CUSTOMER = "customer"
ROLE_PRO = "pro"
ROLE_ADMIN = "admin"

# =====================================================
# Schémas: Utilisateurs
# =====================================================

class UserBase(SQLModel):
    """Modèle SQLModel de base pour un utilisateur (données communes, Pydantic)."""
    email: str = Field(unique=True, index=True, max_length=255, nullable=False)
    role: str = Field(default=ROLE_CUSTOMER, max_length=20, nullable=False)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    # Champs B2B
    company_name: Optional[str] = Field(default=None, max_length=255)
    is_validated: bool = Field(default=False, nullable=False)
    discount_rate: float = Field(default=0.0, ge=0, le=100)

# ----- Modèle de Table -----
class User(UserBase, table=True):
    """Modèle de table SQLModel pour les utilisateurs."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True, index=True)
    password_hash: str = Field(nullable=False, max_length=255)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)

# ----- Schémas API -----
class UserRead(UserBase):
    """Schéma pour lire les données d'un utilisateur (utilisateur courant)."""
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_validated_pro(self) -> bool:
        return self.role == ROLE_PRO and self.is_validated

class CustomerSummary(SQLModel):
    """Identité/contact du client, jointe aux lectures admin d'un devis."""
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
