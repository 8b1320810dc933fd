from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional

import redis
from redis.exceptions import RedisError, ResponseError

from counter_store.base import check_value, parse_counter
from ticketing.errors import StorageUnavailable

# Runs server-side, so the read-modify-write cannot interleave with other clients.
_ADVANCE_LUA = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
if current == nil then
  return redis.error_reply('STORAGE_CORRUPT_VALUE')
end
redis.call('SET', KEYS[1], (current + 1) % tonumber(ARGV[1]))
return current
"""

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


@dataclass
class RedisStoreConfig:
    url: str = "redis://localhost:6379/0"
    password: Optional[str] = None
    timeout_ms: int = 2000


class RedisCounterStore:
    """Counter store backed by Redis. Numbers are kept as decimal strings."""

    def __init__(self, config: RedisStoreConfig):
        self.config = config
        timeout = max(config.timeout_ms / 1000.0, 0.1)
        self._client = redis.Redis.from_url(
            config.url,
            password=config.password,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            decode_responses=True,
        )
        self._advance = self._client.register_script(_ADVANCE_LUA)

    @contextmanager
    def _translate_errors(self, op: str, key: str = "") -> Iterator[None]:
        try:
            yield
        except ResponseError as exc:
            code = "STORAGE_CORRUPT_VALUE" if "STORAGE_CORRUPT_VALUE" in str(exc) else "STORAGE_UNAVAILABLE"
            raise StorageUnavailable(f"redis {op} {key} failed: {exc}", code=code) from exc
        except RedisError as exc:
            raise StorageUnavailable(f"redis {op} {key} failed: {exc}") from exc

    def get(self, key: str) -> Optional[int]:
        with self._translate_errors("GET", key):
            raw = self._client.get(key)
        return parse_counter(key, raw)

    def set(self, key: str, value: int) -> bool:
        value = check_value(value)
        with self._translate_errors("SET", key):
            return bool(self._client.set(key, str(value)))

    def delete(self, key: str) -> bool:
        with self._translate_errors("DEL", key):
            return int(self._client.delete(key)) > 0

    def advance(self, key: str, modulus: int) -> int:
        with self._translate_errors("EVALSHA", key):
            return int(self._advance(keys=[key], args=[modulus]))

    def keys(self, prefix: str) -> List[str]:
        pattern = _GLOB_SPECIAL.sub(r"\\\1", prefix) + "*"
        with self._translate_errors("SCAN", prefix):
            found = {k for k in self._client.scan_iter(match=pattern) if k.startswith(prefix)}
        return sorted(found)

    def ping(self) -> bool:
        with self._translate_errors("PING"):
            return bool(self._client.ping())

    def close(self) -> None:
        self._client.close()
