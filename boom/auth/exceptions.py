"""
Exceptions HTTP du module d'authentification.

Deux familles: les échecs d'authentification (401, toujours accompagnés du
défi `WWW-Authenticate: Bearer` pour que le client renvoie un token) et les
refus d'accès (403, l'identité est connue mais insuffisante).
"""
from typing import Optional

from fastapi import HTTPException, status

from boom.auth.constants import (
    ERROR_CREDENTIALS_INVALID,
    ERROR_TOKEN_INVALID,
    ERROR_TOKEN_MISSING,
    ERROR_PERMISSION_DENIED,
    HEADER_WWW_AUTHENTICATE,
    HEADER_WWW_AUTHENTICATE_VALUE,
)

class AuthenticationFailedException(HTTPException):
    """Échec d'authentification (401). Les sous-classes fixent `default_detail`."""
    default_detail: str = ERROR_TOKEN_INVALID

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail or self.default_detail,
            headers={HEADER_WWW_AUTHENTICATE: HEADER_WWW_AUTHENTICATE_VALUE},
        )

class InvalidCredentialsException(AuthenticationFailedException):
    default_detail = ERROR_CREDENTIALS_INVALID

class TokenInvalidException(AuthenticationFailedException):
    """Token mal signé, expiré, ou dont l'utilisateur n'existe plus."""
    default_detail = ERROR_TOKEN_INVALID

class TokenMissingException(AuthenticationFailedException):
    default_detail = ERROR_TOKEN_MISSING

class PermissionDeniedException(HTTPException):
    """Accès refusé (403); le rôle attendu, s'il est donné, complète le message."""
    def __init__(self, required_role: Optional[str] = None):
        detail = ERROR_PERMISSION_DENIED
        if required_role:
            detail = f"{detail}: rôle '{required_role}' requis"
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        self.required_role = required_role
