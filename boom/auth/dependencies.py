"""
Module définissant les dépendances FastAPI pour l'authentification.

Fournit des dépendances pour:
- Le service d'authentification (AuthService)
- L'obtention de l'utilisateur courant à partir du token JWT
- La vérification des droits admin
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from boom.auth.constants import OAUTH2_TOKEN_URL
from boom.auth.exceptions import TokenMissingException, TokenInvalidException, PermissionDeniedException
from boom.auth.service import AuthService
from boom.database import get_db_session
from boom.users.models import UserRead, ROLE_ADMIN
from boom.users.repositories import UserRepository

logger = logging.getLogger(__name__)

# --- Dépendances OAuth2 ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=OAUTH2_TOKEN_URL, auto_error=False)

DbSessionDep = Annotated[AsyncSession, Depends(get_db_session)]

def get_user_repository(session: DbSessionDep) -> UserRepository:
    return UserRepository(db_session=session)

UserRepositoryDep = Annotated[UserRepository, Depends(get_user_repository)]

def get_auth_service(user_repository: UserRepositoryDep) -> AuthService:
    """
    Fournit une instance du service d'authentification.

    Args:
        user_repository: Instance du repository utilisateur fournie par dépendance.

    Returns:
        AuthService: Instance du service d'authentification.
    """
    logger.debug("Fourniture de AuthService avec UserRepository injecté")
    return AuthService(user_repository=user_repository)

async def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
) -> UserRead:
    """
    Vérifie le token JWT et retourne l'utilisateur courant.

    Raises:
        TokenMissingException: Si le token est manquant
        TokenInvalidException: Si le token est invalide
    """
    if token is None:
        logger.warning("Token manquant dans la requête.")
        raise TokenMissingException()

    user = await auth_service.get_user_from_token(token)
    if user is None:
        logger.warning("Token invalide ou utilisateur non trouvé.")
        raise TokenInvalidException()

    logger.debug(f"Utilisateur authentifié: ID {user.id} ({user.role})")
    return user

async def get_current_admin_user(
    current_user: Annotated[UserRead, Depends(get_current_user)]
) -> UserRead:
    """
    Vérifie que l'utilisateur courant est un administrateur.

    Raises:
        PermissionDeniedException: Si l'utilisateur n'est pas administrateur
    """
    if not current_user.is_admin:
        logger.warning(f"Tentative d'accès à une ressource admin par un utilisateur non-admin: ID {current_user.id}")
        raise PermissionDeniedException(required_role=ROLE_ADMIN)
    return current_user

CurrentUserDep = Annotated[UserRead, Depends(get_current_user)]
AdminUserDep = Annotated[UserRead, Depends(get_current_admin_user)]
