import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from boom.users.models import User, UserRead, CustomerSummary

logger = logging.getLogger(__name__)

class UserRepository:
    """Accès en lecture aux utilisateurs (identité consommée par les autres modules)."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def get_by_id(self, user_id: int) -> Optional[UserRead]:
        user = await self.db.get(User, user_id)
        if user is None:
            logger.debug(f"Utilisateur ID {user_id} non trouvé.")
            return None
        return UserRead.model_validate(user)

    async def get_by_email(self, email: str) -> Optional[User]:
        """Retourne le modèle de table complet (hash inclus) pour l'authentification."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def get_customer_summaries(self, user_ids: Iterable[int]) -> Dict[int, CustomerSummary]:
        ids = set(user_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {u.id: CustomerSummary.model_validate(u) for u in result.scalars().all()}
