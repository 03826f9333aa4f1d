"""
Tests d'intégration pour les endpoints de l'API du journal de stock.
"""
import pytest
from httpx import AsyncClient
from fastapi import status

from boom.config import settings

API_PREFIX = settings.API_V1_PREFIX
STOCK_URL = f"{API_PREFIX}/stock-movements"

pytestmark = pytest.mark.asyncio

async def test_stock_endpoints_require_admin(test_client: AsyncClient, auth_headers_pro, product_pump):
    response = await test_client.get(f"{STOCK_URL}/", headers=auth_headers_pro)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await test_client.post(
        f"{STOCK_URL}/products/{product_pump.id}", json={"quantity": 1, "type": "in"}, headers=auth_headers_pro
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await test_client.get(f"{STOCK_URL}/stats")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

async def test_apply_stock_in(test_client: AsyncClient, auth_headers_admin, product_pump):
    response = await test_client.post(
        f"{STOCK_URL}/products/{product_pump.id}",
        json={"quantity": 5, "type": "in", "notes": "Réception"},
        headers=auth_headers_admin,
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["previous_stock"] == 10
    assert data["new_stock"] == 15
    assert data["movement"]["quantity"] == 5
    assert data["movement"]["notes"] == "Réception"

async def test_apply_stock_out_below_zero(test_client: AsyncClient, auth_headers_admin, product_hose):
    response = await test_client.post(
        f"{STOCK_URL}/products/{product_hose.id}", json={"quantity": 5, "type": "out"}, headers=auth_headers_admin
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_apply_stock_unknown_type(test_client: AsyncClient, auth_headers_admin, product_pump):
    response = await test_client.post(
        f"{STOCK_URL}/products/{product_pump.id}", json={"quantity": 5, "type": "loss"}, headers=auth_headers_admin
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

async def test_apply_stock_negative_quantity_rejected(test_client: AsyncClient, auth_headers_admin, product_pump):
    response = await test_client.post(
        f"{STOCK_URL}/products/{product_pump.id}", json={"quantity": -1, "type": "in"}, headers=auth_headers_admin
    )
    assert response.status_code == 422

async def test_apply_stock_missing_product(test_client: AsyncClient, auth_headers_admin):
    response = await test_client.post(
        f"{STOCK_URL}/products/9999", json={"quantity": 1, "type": "in"}, headers=auth_headers_admin
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND

async def test_history_and_balance(test_client: AsyncClient, auth_headers_admin, product_pump):
    url = f"{STOCK_URL}/products/{product_pump.id}"
    await test_client.post(url, json={"quantity": 2, "type": "out"}, headers=auth_headers_admin)
    await test_client.post(url, json={"quantity": 12, "type": "adjustment"}, headers=auth_headers_admin)

    history = await test_client.get(url, headers=auth_headers_admin)
    assert history.status_code == status.HTTP_200_OK
    assert [(m["type"], m["quantity"]) for m in history.json()] == [("adjustment", 4), ("out", -2)]

    balance = await test_client.get(f"{url}/balance", headers=auth_headers_admin)
    assert balance.status_code == status.HTTP_200_OK
    data = balance.json()
    assert data["cached_quantity"] == 12
    assert data["ledger_quantity"] == 2
    assert data["movement_count"] == 2
    assert data["drift"] == 10

async def test_recent_movements_list(test_client: AsyncClient, auth_headers_admin, product_pump, product_hose):
    await test_client.post(f"{STOCK_URL}/products/{product_pump.id}", json={"quantity": 1, "type": "in"}, headers=auth_headers_admin)
    await test_client.post(f"{STOCK_URL}/products/{product_hose.id}", json={"quantity": 1, "type": "out"}, headers=auth_headers_admin)

    response = await test_client.get(f"{STOCK_URL}/", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 2
    assert data["items"][0]["product_name"] == "Tuyau d'arrosage 25m"

    filtered = await test_client.get(f"{STOCK_URL}/", params={"type": "in"}, headers=auth_headers_admin)
    assert filtered.json()["total"] == 1

    invalid = await test_client.get(f"{STOCK_URL}/", params={"type": "loss"}, headers=auth_headers_admin)
    assert invalid.status_code == 422

async def test_stats_and_low_stock(test_client: AsyncClient, auth_headers_admin, product_pump, product_hose, product_out_of_stock):
    stats = await test_client.get(f"{STOCK_URL}/stats", headers=auth_headers_admin)
    assert stats.status_code == status.HTTP_200_OK
    assert stats.json() == {
        "total_products": 3,
        "low_stock_count": 1,
        "out_of_stock_count": 1,
        "total_movements_today": 0,
    }

    low = await test_client.get(f"{STOCK_URL}/low-stock", headers=auth_headers_admin)
    data = low.json()
    assert data["total"] == 2
    assert [p["sku"] for p in data["items"]] == ["SEC-010", "TUY-025"]

async def test_bulk_update(test_client: AsyncClient, auth_headers_admin, product_pump, product_hose):
    payload = {"updates": [
        {"product_id": product_pump.id, "quantity": 3, "type": "out"},
        {"product_id": product_hose.id, "quantity": 9, "type": "out"},
    ]}
    response = await test_client.post(f"{STOCK_URL}/bulk", json=payload, headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    results = response.json()
    assert results[0] == {"product_id": product_pump.id, "success": True, "new_stock": 7, "error": None}
    assert results[1]["success"] is False
    assert results[1]["error"]
