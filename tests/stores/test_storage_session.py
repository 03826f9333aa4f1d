"""
Tests du stockage durable et de la session de navigation.
"""
import logging

from boom.stores.cart import CartItem, CART_STORAGE_KEY
from boom.stores.comparison import ComparisonProduct
from boom.stores.session import StorefrontSession
from boom.stores.storage import AbstractStorage, JsonFileStorage, MemoryStorage

class FailingStorage(AbstractStorage):
    """Stockage indisponible (quota dépassé, navigation privée...)."""

    def get(self, key):
        raise OSError("stockage indisponible")

    def set(self, key, value):
        raise OSError("quota dépassé")

def cart_item(product_id: int, quantity: int = 1) -> CartItem:
    return CartItem(
        product_id=product_id, quantity=quantity, name="Bêche", slug="beche",
        price_ht=20.0, price_ttc=24.0, stock_quantity=10,
    )

def test_json_file_storage_round_trip(tmp_path):
    storage = JsonFileStorage(tmp_path / "client")
    assert storage.get("boom-cart") is None

    storage.set("boom-cart", '[{"a": 1}]')
    assert (tmp_path / "client" / "boom-cart.json").exists()
    assert JsonFileStorage(tmp_path / "client").get("boom-cart") == '[{"a": 1}]'

def test_session_persists_to_files_and_rehydrates(tmp_path):
    session = StorefrontSession.from_directory(str(tmp_path))
    session.hydrate()
    session.cart.add(cart_item(1, quantity=3))
    session.comparison.add(ComparisonProduct(id=9, name="Tondeuse", slug="tondeuse", price_ht=200.0, price_ttc=240.0))

    reopened = StorefrontSession.from_directory(str(tmp_path))
    reopened.hydrate()
    assert reopened.is_hydrated
    assert [(i.product_id, i.quantity) for i in reopened.cart.items] == [(1, 3)]
    assert [p.id for p in reopened.comparison.items] == [9]

def test_unavailable_storage_never_raises(caplog):
    session = StorefrontSession(FailingStorage())
    with caplog.at_level(logging.WARNING):
        session.hydrate()
        session.cart.add(cart_item(1, quantity=2))

    # L'état en mémoire reste la référence
    assert session.is_hydrated
    assert session.cart.get(1).quantity == 2
    assert any("Échec d'écriture" in r.getMessage() for r in caplog.records)

def test_teardown_keeps_durable_copy():
    storage = MemoryStorage()
    session = StorefrontSession(storage)
    session.hydrate()
    session.cart.add(cart_item(4, quantity=2))
    calls = []
    session.cart.subscribe(lambda items: calls.append(len(items)))

    session.teardown()
    assert not session.is_hydrated
    assert session.cart.is_empty
    assert storage.get(CART_STORAGE_KEY) is not None

    session.hydrate()
    assert session.cart.get(4).quantity == 2
    # Les abonnés ont été détachés par teardown
    assert calls == []

def test_sessions_are_independent():
    first = StorefrontSession(MemoryStorage())
    second = StorefrontSession(MemoryStorage())
    first.hydrate()
    second.hydrate()
    first.cart.add(cart_item(1))
    assert second.cart.is_empty
