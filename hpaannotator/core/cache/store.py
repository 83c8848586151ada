"""
Thread-safe keyed store backing the informer cache.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from .keys import meta_namespace_key


class ThreadSafeStore:
    """Keyed object store; the informer writes, listers read."""

    def __init__(self, key_func: Callable[[Any], str] = meta_namespace_key):
        self._key_func = key_func
        self._items: Dict[str, Any] = {}
        self._lock = threading.RLock()

    def key_of(self, obj: Any) -> str:
        return self._key_func(obj)

    def add(self, obj: Any) -> None:
        key = self._key_func(obj)
        with self._lock:
            self._items[key] = obj

    update = add

    def delete(self, obj: Any) -> None:
        key = self._key_func(obj)
        with self._lock:
            self._items.pop(key, None)

    def get_by_key(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._items.get(key)

    def list(self) -> List[Any]:
        with self._lock:
            return list(self._items.values())

    def list_keys(self) -> List[str]:
        with self._lock:
            return list(self._items.keys())

    def replace(self, objs: Iterable[Any]) -> None:
        """Swap the whole content for ``objs`` (used after a full re-list)."""
        fresh = {self._key_func(obj): obj for obj in objs}
        with self._lock:
            self._items = fresh

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
