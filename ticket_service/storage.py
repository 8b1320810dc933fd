from __future__ import annotations

from counter_store.base import CounterStore
from counter_store.memory import InMemoryCounterStore
from counter_store.redis_store import RedisCounterStore, RedisStoreConfig
from ticket_service.config import Settings


def build_store(settings: Settings) -> CounterStore:
    backend = settings.storage_backend.lower()
    if backend == "memory":
        return InMemoryCounterStore()
    if backend == "redis":
        return RedisCounterStore(
            RedisStoreConfig(
                url=settings.redis_url,
                password=settings.redis_password,
                timeout_ms=settings.redis_timeout_ms,
            )
        )
    raise ValueError(f"unknown storage backend: {settings.storage_backend!r}")
