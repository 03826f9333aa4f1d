"""
Collection persistée générique (panier, comparateur).

Séquence ordonnée d'entrées distinctes par identifiant, hydratée une fois
depuis le stockage durable puis réécrite intégralement à chaque mutation.
Les mutations sont synchrones et appliquées dans l'ordre des appels.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from boom.stores.storage import AbstractStorage

logger = logging.getLogger(__name__)

EntryT = TypeVar("EntryT", bound=BaseModel)
Listener = Callable[[List[EntryT]], None]

class PersistedCollection(ABC, Generic[EntryT]):
    """Base des collections persistées côté client."""

    storage_key: str = ""
    entry_type: Type[EntryT]

    def __init__(self, storage: AbstractStorage, storage_key: Optional[str] = None):
        self.storage = storage
        if storage_key is not None:
            self.storage_key = storage_key
        self._adapter = TypeAdapter(List[self.entry_type])
        self._items: List[EntryT] = []
        self._is_hydrated = False
        self._listeners: List[Listener] = []

    @abstractmethod
    def entry_id(self, entry: EntryT) -> int:
        """Identifiant d'unicité d'une entrée."""

    def _normalize(self, entries: List[EntryT]) -> List[EntryT]:
        """Corrige un contenu relu du stockage (surchargé par les sous-classes)."""
        return entries

    # --- Lecture ---

    @property
    def items(self) -> List[EntryT]:
        return list(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def is_hydrated(self) -> bool:
        return self._is_hydrated

    def contains(self, entry_id: int) -> bool:
        return self._index_of(entry_id) is not None

    def get(self, entry_id: int) -> Optional[EntryT]:
        index = self._index_of(entry_id)
        return None if index is None else self._items[index]

    def _index_of(self, entry_id: int) -> Optional[int]:
        for index, entry in enumerate(self._items):
            if self.entry_id(entry) == entry_id:
                return index
        return None

    # --- Cycle de vie ---

    def hydrate(self) -> None:
        """
        Lecture unique du stockage durable. Sans effet une fois hydratée;
        appelée implicitement par la première mutation.
        Un stockage illisible ou corrompu donne une collection vide.
        """
        if self._is_hydrated:
            return
        self._items = self._normalize(self._dedupe(self._load()))
        self._is_hydrated = True
        logger.debug(f"[{type(self).__name__}] Hydratée avec {len(self._items)} entrée(s)")
        self._notify()

    def teardown(self) -> None:
        """Détache les abonnés et libère l'état en mémoire. La copie durable est conservée."""
        self._listeners.clear()
        self._items = []
        self._is_hydrated = False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Abonne un observateur notifié après chaque mutation; retourne la désinscription."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # --- Mutations communes ---

    def _ensure_hydrated(self) -> None:
        # Une mutation ne doit jamais écraser la copie durable non relue
        if not self._is_hydrated:
            self.hydrate()

    def remove(self, entry_id: int) -> None:
        self._ensure_hydrated()
        self._commit([e for e in self._items if self.entry_id(e) != entry_id])

    def clear(self) -> None:
        self._ensure_hydrated()
        self._commit([])

    # --- Persistance ---

    def _load(self) -> List[EntryT]:
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.warning(f"[{type(self).__name__}] Stockage '{self.storage_key}' illisible: {e}")
            return []
        if not raw:
            return []
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"[{type(self).__name__}] Contenu corrompu pour '{self.storage_key}', collection vidée: {e}")
            return []

    def _dedupe(self, entries: Iterable[EntryT]) -> List[EntryT]:
        seen = set()
        unique: List[EntryT] = []
        for entry in entries:
            key = self.entry_id(entry)
            if key in seen:
                continue
            seen.add(key)
            unique.append(entry)
        return unique

    def _persist(self) -> None:
        try:
            payload = self._adapter.dump_json(self._items).decode("utf-8")
            self.storage.set(self.storage_key, payload)
        except Exception as e:
            # L'état en mémoire reste la référence
            logger.warning(f"[{type(self).__name__}] Échec d'écriture de '{self.storage_key}': {e}")

    def _commit(self, entries: List[EntryT]) -> None:
        self._items = entries
        self._persist()
        self._notify()

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            listener(snapshot)
