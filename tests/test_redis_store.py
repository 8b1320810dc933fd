from __future__ import annotations

import fnmatch
from typing import Any, Dict, List

import pytest
import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError

from counter_store.redis_store import RedisCounterStore, RedisStoreConfig
from ticketing.engine import TicketEngine
from ticketing.errors import StorageUnavailable


class _StubRedis:
    """Enough of redis.Redis for the counter store, with decode_responses=True."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.error: Exception | None = None
        self.closed = False

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def get(self, key: str) -> str | None:
        self._check()
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._check()
        self.data[key] = value
        return True

    def delete(self, key: str) -> int:
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    def ping(self) -> bool:
        self._check()
        return True

    def scan_iter(self, match: str = "*"):
        self._check()
        for key in list(self.data):
            if fnmatch.fnmatchcase(key, match):
                yield key

    def register_script(self, _script: str):
        def run(keys: List[str], args: List[Any]) -> int:
            self._check()
            raw = self.data.get(keys[0], "0")
            try:
                current = int(raw)
            except ValueError:
                raise ResponseError("STORAGE_CORRUPT_VALUE")
            self.data[keys[0]] = str((current + 1) % int(args[0]))
            return current

        return run

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub(monkeypatch: pytest.MonkeyPatch) -> _StubRedis:
    client = _StubRedis()
    seen: Dict[str, Any] = {}

    def _from_url(url: str, **kwargs: Any) -> _StubRedis:
        seen.update(kwargs, url=url)
        return client

    monkeypatch.setattr(redis.Redis, "from_url", _from_url)
    client.seen = seen  # type: ignore[attr-defined]
    return client


@pytest.fixture
def store(stub: _StubRedis) -> RedisCounterStore:
    return RedisCounterStore(RedisStoreConfig(url="redis://cache:6379/2", timeout_ms=1500))


def test_client_uses_bounded_timeouts(store: RedisCounterStore, stub: _StubRedis) -> None:
    assert stub.seen["url"] == "redis://cache:6379/2"  # type: ignore[attr-defined]
    assert stub.seen["socket_timeout"] == 1.5  # type: ignore[attr-defined]
    assert stub.seen["socket_connect_timeout"] == 1.5  # type: ignore[attr-defined]
    assert stub.seen["decode_responses"] is True  # type: ignore[attr-defined]


def test_values_round_trip_as_integers(store: RedisCounterStore, stub: _StubRedis) -> None:
    assert store.get("queue:a:ticket") is None
    store.set("queue:a:ticket", 12)
    assert stub.data["queue:a:ticket"] == "12"
    assert store.get("queue:a:ticket") == 12
    assert store.delete("queue:a:ticket") is True
    assert store.delete("queue:a:ticket") is False


def test_advance_wraps_on_server(store: RedisCounterStore, stub: _StubRedis) -> None:
    stub.data["k"] = "9999"
    assert store.advance("k", 10000) == 9999
    assert stub.data["k"] == "0"
    assert store.advance("missing", 10000) == 0
    assert stub.data["missing"] == "1"


def test_connection_errors_become_storage_unavailable(store: RedisCounterStore, stub: _StubRedis) -> None:
    stub.error = RedisConnectionError("connection refused")
    for call in (
        lambda: store.get("k"),
        lambda: store.set("k", 1),
        lambda: store.delete("k"),
        lambda: store.advance("k", 10000),
        lambda: store.keys("queue:"),
        store.ping,
    ):
        with pytest.raises(StorageUnavailable) as exc:
            call()
        assert exc.value.code == "STORAGE_UNAVAILABLE"


def test_timeout_becomes_storage_unavailable(store: RedisCounterStore, stub: _StubRedis) -> None:
    stub.error = RedisTimeoutError("timed out")
    with pytest.raises(StorageUnavailable):
        store.advance("k", 10000)


def test_failed_write_keeps_previous_value(store: RedisCounterStore, stub: _StubRedis) -> None:
    store.set("k", 3)
    stub.error = RedisConnectionError("down")
    with pytest.raises(StorageUnavailable):
        store.set("k", 0)
    stub.error = None
    assert store.get("k") == 3


def test_corrupt_value_is_reported(store: RedisCounterStore, stub: _StubRedis) -> None:
    stub.data["k"] = "not-a-number"
    with pytest.raises(StorageUnavailable) as exc1:
        store.get("k")
    assert exc1.value.code == "STORAGE_CORRUPT_VALUE"

    with pytest.raises(StorageUnavailable) as exc2:
        store.advance("k", 10000)
    assert exc2.value.code == "STORAGE_CORRUPT_VALUE"


def test_keys_scans_prefix(store: RedisCounterStore, stub: _StubRedis) -> None:
    stub.data.update({"queue:b:ticket": "1", "queue:a:ticket": "4", "session:x": "1"})
    assert store.keys("queue:") == ["queue:a:ticket", "queue:b:ticket"]


def test_engine_sequence_over_redis(store: RedisCounterStore, stub: _StubRedis) -> None:
    engine = TicketEngine(store=store)
    assert [engine.issue_next("checkout") for _ in range(3)] == ["0000", "0001", "0002"]
    assert stub.data["queue:checkout:ticket"] == "3"
    assert engine.reset_queue("checkout") is True
    assert engine.issue_next("checkout") == "0000"


def test_close_closes_client(store: RedisCounterStore, stub: _StubRedis) -> None:
    store.close()
    assert stub.closed is True
