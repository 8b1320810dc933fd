from __future__ import annotations

from typing import List, Optional, Protocol

from ticketing.errors import StorageUnavailable


class CounterStore(Protocol):
    """
    Integer key/value capabilities the ticket engine relies on.
    A missing key is never an error: get() returns None for it.
    """

    def get(self, key: str) -> Optional[int]:
        ...

    def set(self, key: str, value: int) -> bool:
        ...

    def delete(self, key: str) -> bool:
        ...

    def advance(self, key: str, modulus: int) -> int:
        ...

    def keys(self, prefix: str) -> List[str]:
        ...

    def ping(self) -> bool:
        ...

    def close(self) -> None:
        ...


def parse_counter(key: str, raw: object) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="replace")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise StorageUnavailable(
            f"non-integer value stored under {key!r}", code="STORAGE_CORRUPT_VALUE"
        ) from exc


def check_value(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"counter values must be int, got {type(value).__name__}")
    return value
