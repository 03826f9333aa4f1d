"""
Module définissant les routes API FastAPI pour l'authentification.

Contient les endpoints pour:
- /token : Connexion et obtention d'un token JWT
- /me : Récupération des informations de l'utilisateur connecté
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from boom.auth.dependencies import get_auth_service, CurrentUserDep
from boom.auth.exceptions import InvalidCredentialsException
from boom.auth.security import create_access_token
from boom.auth.service import AuthService
from boom.users.models import UserRead

logger = logging.getLogger(__name__)

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

router = APIRouter()

@router.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    auth_service: Annotated[AuthService, Depends(get_auth_service)]
):
    """
    Authentifie l'utilisateur et retourne un token JWT.

    - **username**: Email de l'utilisateur (utilisé comme identifiant)
    - **password**: Mot de passe de l'utilisateur
    """
    logger.info("[Router] Tentative de login pour: %s", form_data.username)
    user = await auth_service.authenticate_user(email=form_data.username, password=form_data.password)
    if not user:
        raise InvalidCredentialsException()

    access_token = create_access_token(data={"sub": str(user.id)})
    logger.info("[Router] Token créé pour user ID: %s", user.id)
    return Token(access_token=access_token)

@router.get("/me", response_model=UserRead)
async def read_users_me(current_user: CurrentUserDep):
    """Récupère les informations de l'utilisateur actuellement connecté."""
    return current_user

auth_router = router
