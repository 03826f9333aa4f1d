"""
Tests du panier persisté.
"""
import json

import pytest

from boom.pricing.models import OrderLine
from boom.quotes.models import OrderDraftItem
from boom.stores.cart import CartItem, CartStore, CART_STORAGE_KEY
from boom.stores.storage import MemoryStorage

def make_item(product_id: int = 1, quantity: int = 2, stock_quantity: int = 5, price_ht: float = 100.0, price_ttc: float = 120.0) -> CartItem:
    return CartItem(
        product_id=product_id,
        quantity=quantity,
        name=f"Produit {product_id}",
        slug=f"produit-{product_id}",
        price_ht=price_ht,
        price_ttc=price_ttc,
        image_url=None,
        stock_quantity=stock_quantity,
    )

@pytest.fixture
def storage():
    return MemoryStorage()

@pytest.fixture
def cart(storage):
    store = CartStore(storage)
    store.hydrate()
    return store

def test_update_quantity_clamps_to_stock_then_removes_at_zero(cart):
    """Scénario: quantité 10 bornée au stock (5), puis 0 retire l'article."""
    cart.add(make_item(product_id=1, quantity=2, stock_quantity=5))

    cart.update_quantity(1, 10)
    assert cart.get(1).quantity == 5

    cart.update_quantity(1, 0)
    assert cart.is_empty
    assert cart.get(1) is None

def test_update_quantity_negative_removes_entry(cart):
    cart.add(make_item(product_id=1))
    cart.update_quantity(1, -3)
    assert cart.count == 0

def test_update_quantity_is_idempotent(cart):
    cart.add(make_item(product_id=1, quantity=1, stock_quantity=5))
    cart.update_quantity(1, 3)
    first = [(i.product_id, i.quantity) for i in cart.items]
    cart.update_quantity(1, 3)
    assert [(i.product_id, i.quantity) for i in cart.items] == first == [(1, 3)]

def test_update_quantity_unknown_product_is_noop(cart, storage):
    cart.update_quantity(42, 3)
    assert cart.is_empty
    assert storage.get(CART_STORAGE_KEY) is None

def test_add_merges_and_caps_at_existing_stock(cart):
    cart.add(make_item(product_id=1, quantity=3, stock_quantity=5))
    cart.add(make_item(product_id=1, quantity=4, stock_quantity=50))
    assert cart.count == 1
    assert cart.get(1).quantity == 5

def test_add_new_item_is_clamped_to_stock(cart):
    cart.add(make_item(product_id=2, quantity=8, stock_quantity=3))
    assert cart.get(2).quantity == 3

def test_add_out_of_stock_item_stores_nothing(cart):
    cart.add(make_item(product_id=3, quantity=1, stock_quantity=0))
    assert cart.is_empty

def test_add_preserves_insertion_order(cart):
    for product_id in (3, 1, 2):
        cart.add(make_item(product_id=product_id))
    cart.add(make_item(product_id=1, quantity=1))
    assert [i.product_id for i in cart.items] == [3, 1, 2]

def test_remove_and_clear_persist_immediately(cart, storage):
    cart.add(make_item(product_id=1))
    cart.add(make_item(product_id=2))

    cart.remove(1)
    assert [e["product_id"] for e in json.loads(storage.get(CART_STORAGE_KEY))] == [2]

    cart.clear()
    assert json.loads(storage.get(CART_STORAGE_KEY)) == []

def test_totals_and_item_count(cart):
    cart.add(make_item(product_id=1, quantity=2, price_ht=100.0, price_ttc=120.0))
    cart.add(make_item(product_id=2, quantity=1, price_ht=10.0, price_ttc=11.0))

    totals = cart.totals()
    assert cart.item_count == 3
    assert totals.item_count == 3
    assert totals.subtotal_ht == pytest.approx(210.0)
    assert totals.subtotal_ttc == pytest.approx(251.0)
    assert totals.tax_amount == pytest.approx(41.0)
    assert totals.total_ttc == pytest.approx(251.0)

def test_round_trip_hydrate_restores_collection(storage):
    cart = CartStore(storage)
    cart.hydrate()
    cart.add(make_item(product_id=1, quantity=2))
    cart.add(make_item(product_id=7, quantity=4, stock_quantity=10))

    reloaded = CartStore(storage)
    reloaded.hydrate()
    assert [(i.product_id, i.quantity) for i in reloaded.items] == [(1, 2), (7, 4)]
    assert reloaded.is_hydrated

def test_hydrate_is_idempotent(storage):
    cart = CartStore(storage)
    cart.hydrate()
    cart.add(make_item(product_id=1))
    storage.set(CART_STORAGE_KEY, "[]")

    cart.hydrate()
    assert cart.count == 1

def test_hydrate_with_corrupt_storage_starts_empty():
    storage = MemoryStorage({CART_STORAGE_KEY: "{pas du json"})
    cart = CartStore(storage)
    cart.hydrate()
    assert cart.is_hydrated
    assert cart.is_empty

def test_hydrate_drops_duplicates_and_invalid_quantities():
    payload = [
        make_item(product_id=1, quantity=2).model_dump(),
        make_item(product_id=1, quantity=4).model_dump(),
        make_item(product_id=2, quantity=0).model_dump(),
        make_item(product_id=3, quantity=9, stock_quantity=4).model_dump(),
    ]
    cart = CartStore(MemoryStorage({CART_STORAGE_KEY: json.dumps(payload)}))
    cart.hydrate()
    assert [(i.product_id, i.quantity) for i in cart.items] == [(1, 2), (3, 4)]

def test_set_items_replaces_content(cart):
    cart.add(make_item(product_id=1))
    cart.set_items([make_item(product_id=5, quantity=1), make_item(product_id=6, quantity=2)])
    assert [i.product_id for i in cart.items] == [5, 6]

def test_checkout_snapshot_shape(cart):
    cart.add(make_item(product_id=1, quantity=2, price_ht=100.0))
    snapshot = cart.checkout_snapshot()
    assert snapshot == [OrderLine(product_id=1, quantity=2, unit_price_ht=100.0)]
    # Même forme que les lignes dérivées d'un devis accepté
    assert set(OrderLine.model_fields) <= set(OrderDraftItem.model_fields)

def test_subscribers_receive_snapshots_until_unsubscribed(cart):
    received = []
    unsubscribe = cart.subscribe(lambda items: received.append([i.product_id for i in items]))

    cart.add(make_item(product_id=1))
    cart.add(make_item(product_id=2))
    unsubscribe()
    cart.remove(1)

    assert received == [[1], [1, 2]]

def test_mutation_before_hydrate_keeps_saved_cart(storage):
    saved = CartStore(storage)
    saved.hydrate()
    saved.add(make_item(product_id=1))

    fresh = CartStore(storage)
    fresh.add(make_item(product_id=2, quantity=1))
    assert fresh.is_hydrated
    assert [i.product_id for i in fresh.items] == [1, 2]

    fresh.hydrate()
    reloaded = CartStore(storage)
    reloaded.hydrate()
    assert [i.product_id for i in reloaded.items] == [1, 2]

def test_remove_before_hydrate_only_drops_target(storage):
    saved = CartStore(storage)
    saved.add(make_item(product_id=1))
    saved.add(make_item(product_id=2))

    fresh = CartStore(storage)
    fresh.remove(1)
    assert [item["product_id"] for item in json.loads(storage.get(CART_STORAGE_KEY))] == [2]

def test_mutation_after_teardown_rereads_storage(cart, storage):
    cart.add(make_item(product_id=1))
    cart.teardown()

    cart.update_quantity(1, 4)
    assert cart.get(1).quantity == 4
    assert json.loads(storage.get(CART_STORAGE_KEY))[0]["quantity"] == 4
