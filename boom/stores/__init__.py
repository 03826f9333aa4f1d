from boom.stores.storage import AbstractStorage, MemoryStorage, JsonFileStorage
from boom.stores.base import PersistedCollection
from boom.stores.cart import CartItem, CartStore, CART_STORAGE_KEY
from boom.stores.comparison import ComparisonProduct, ComparisonStore, COMPARISON_STORAGE_KEY
from boom.stores.session import StorefrontSession
