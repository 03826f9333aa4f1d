"""
Constantes pour le module d'authentification.
"""

# --- Messages d'erreur ---
ERROR_CREDENTIALS_INVALID = "Email ou mot de passe incorrect"
ERROR_TOKEN_INVALID = "Token d'authentification invalide"
ERROR_TOKEN_MISSING = "Token d'authentification manquant"
ERROR_PERMISSION_DENIED = "Permission refusée"

# --- En-têtes HTTP ---
HEADER_WWW_AUTHENTICATE = "WWW-Authenticate"
HEADER_WWW_AUTHENTICATE_VALUE = "Bearer"

# --- OAuth2 ---
OAUTH2_TOKEN_URL = "/api/v1/auth/token"
