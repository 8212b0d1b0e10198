"""In-process result cache.

Keyed by normalized query or product code, kept for the life of the
process with no eviction. Only successful results are stored.
"""

import threading
from typing import Any, Dict, Optional

__all__ = ["ResultCache", "search_key", "compare_key", "product_key"]


def search_key(query: str, max_results: int) -> str:
    return f"search:{query.strip().lower()}:{max_results}"


def compare_key(query: str) -> str:
    return f"compare:{query.strip().lower()}"


def product_key(code: str) -> str:
    return f"product:{code}"


class ResultCache:
    """Thread-safe get/set store; ``get`` returns None for absent keys."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
