"""
Tests d'intégration pour l'authentification (token JWT et profil courant).
"""
import pytest
from httpx import AsyncClient
from fastapi import status

from boom.auth.constants import ERROR_CREDENTIALS_INVALID, ERROR_TOKEN_INVALID, ERROR_TOKEN_MISSING
from boom.config import settings

API_PREFIX = settings.API_V1_PREFIX

pytestmark = pytest.mark.asyncio

async def test_login_success(test_client: AsyncClient, pro_user):
    response = await test_client.post(
        f"{API_PREFIX}/auth/token",
        data={"username": "pro@example.com", "password": "testpassword"},
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]

    me = await test_client.get(
        f"{API_PREFIX}/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["email"] == "pro@example.com"
    assert me.json()["role"] == "pro"
    assert me.json()["is_validated"] is True

async def test_login_wrong_password(test_client: AsyncClient, pro_user):
    response = await test_client.post(
        f"{API_PREFIX}/auth/token",
        data={"username": "pro@example.com", "password": "mauvais"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == ERROR_CREDENTIALS_INVALID
    assert response.headers["WWW-Authenticate"] == "Bearer"

async def test_login_unknown_user(test_client: AsyncClient):
    response = await test_client.post(
        f"{API_PREFIX}/auth/token",
        data={"username": "inconnu@example.com", "password": "testpassword"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

async def test_me_requires_token(test_client: AsyncClient):
    response = await test_client.get(f"{API_PREFIX}/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == ERROR_TOKEN_MISSING
    assert response.headers["WWW-Authenticate"] == "Bearer"

async def test_me_with_invalid_token(test_client: AsyncClient):
    response = await test_client.get(f"{API_PREFIX}/auth/me", headers={"Authorization": "Bearer pas-un-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == ERROR_TOKEN_INVALID
    assert response.headers["WWW-Authenticate"] == "Bearer"

async def test_admin_route_refused_for_pro(test_client: AsyncClient, auth_headers_pro):
    response = await test_client.get(f"{API_PREFIX}/stock-movements/stats", headers=auth_headers_pro)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert "'admin' requis" in response.json()["detail"]
    assert "WWW-Authenticate" not in response.headers
