"""Translation result cache.

Results are keyed by ``f"{target}:{text}"`` and kept in memory.  Every new
entry also rewrites the whole cache, as one JSON object, under a single
namespaced key of a durable ``KeyValueStore``; the object is read back once
when the cache is built.

Persistence is best effort.  A store that cannot be read, holds corrupt
JSON, or fails on write (full disk, permissions) leaves the in-memory cache
fully working; the failure is only logged at DEBUG level.

Stores
------
``JsonFileStore``  Key-value pairs in one JSON file; survives restarts.
``MemoryStore``    Plain dict; used when persistence is disabled and in tests.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE_KEY = "tranCache"


def cache_key(target: str, text: str) -> str:
    """Cache key for one (target language, source text) pair."""
    return f"{target}:{text}"


class KeyValueStore(Protocol):
    """Durable string-to-string storage, one value per key."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process ``KeyValueStore``; nothing outlives the process."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JsonFileStore:
    """``KeyValueStore`` backed by a single JSON object on disk.

    The file is read on every ``get_item`` and rewritten on every
    ``set_item``.  Writes go to a sibling temp file first and are moved into
    place so a crash mid-write never leaves a truncated file behind.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return data if isinstance(data, dict) else {}

    def get_item(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            items = self._read_all()
        except ValueError:
            items = {}
        items[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)


class TranslationCache:
    """In-memory translation cache mirrored to a ``KeyValueStore``.

    Attributes:
        _store:         Durable store, or ``None`` for memory only.
        _namespace_key: Store key holding the serialized cache.
        _entries:       The cache itself.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        *,
        namespace_key: str = DEFAULT_NAMESPACE_KEY,
    ) -> None:
        self._store = store
        self._namespace_key = namespace_key
        self._entries: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if self._store is None:
            return {}
        try:
            raw = self._store.get_item(self._namespace_key)
            data = json.loads(raw or "{}")
        except Exception:
            logger.debug("Translation cache could not be loaded; starting empty", exc_info=True)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(key): value for key, value in data.items() if value is not None}

    def save(self) -> None:
        """Write the whole cache to the store; failures are ignored."""
        if self._store is None:
            return
        try:
            payload = json.dumps(self._entries, ensure_ascii=False)
            self._store.set_item(self._namespace_key, payload)
        except Exception:
            logger.debug("Translation cache could not be persisted", exc_info=True)

    def get(self, target: str, text: str) -> Any:
        return self._entries.get(cache_key(target, text))

    def put(self, target: str, text: str, translated: Any) -> None:
        """Store (or overwrite) one entry and persist the cache."""
        self._entries[cache_key(target, text)] = translated
        self.save()

    def contains(self, target: str, text: str) -> bool:
        return cache_key(target, text) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
