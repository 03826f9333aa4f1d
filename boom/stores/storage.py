"""
Stockage durable clé/valeur des collections côté client.

Une valeur est une chaîne JSON; `get` retourne None pour une clé absente.
Les erreurs d'E/S remontent à l'appelant (la collection les journalise).
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

class AbstractStorage(ABC):
    """Interface du stockage durable (équivalent d'un localStorage)."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

class MemoryStorage(AbstractStorage):
    """Stockage en mémoire, utile pour les tests et les sessions éphémères."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

class JsonFileStorage(AbstractStorage):
    """Un fichier `<clé>.json` par clé dans un répertoire."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        # Écriture atomique: fichier temporaire puis renommage
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug(f"[JsonFileStorage] Clé '{key}' écrite dans {path}")
