from __future__ import annotations

import threading
from typing import Dict, List, Optional

from counter_store.base import check_value


class InMemoryCounterStore:
    """
    Process-local counter store. Every operation holds a single lock, so
    advance() is an atomic read-modify-write for concurrent callers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._values: Dict[str, int] = {}

    def get(self, key: str) -> Optional[int]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: int) -> bool:
        value = check_value(value)
        with self._lock:
            self._values[key] = value
        return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._values.pop(key, None) is not None

    def advance(self, key: str, modulus: int) -> int:
        with self._lock:
            current = self._values.get(key, 0)
            self._values[key] = (current + 1) % modulus
            return current

    def keys(self, prefix: str) -> List[str]:
        with self._lock:
            return sorted(k for k in self._values if k.startswith(prefix))

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        return None
