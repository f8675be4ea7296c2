from __future__ import annotations

import json
from typing import Protocol

from redis import Redis

from asset_cache_worker.infrastructure.data_models import AssetResponse


class CacheContainer(Protocol):
    name: str

    def match(self, url: str) -> AssetResponse | None: ...
    def put(self, url: str, response: AssetResponse) -> None: ...
    def keys(self) -> list[str]: ...


class CacheStorage(Protocol):
    def open(self, name: str) -> CacheContainer: ...
    def keys(self) -> list[str]: ...
    def delete(self, name: str) -> bool: ...


# -----------------------------
# In-memory backend
# -----------------------------
class InMemoryCacheContainer:
    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, AssetResponse] = {}

    def match(self, url: str) -> AssetResponse | None:
        stored = self._entries.get(url)
        if stored is None:
            return None
        return AssetResponse(stored.status, dict(stored.headers), stored.body, from_cache=True)

    def put(self, url: str, response: AssetResponse) -> None:
        self._entries[url] = AssetResponse(response.status, dict(response.headers), response.body)

    def keys(self) -> list[str]:
        return list(self._entries)


class InMemoryCacheStorage:
    """Process-local cache storage, one container per version name."""

    def __init__(self) -> None:
        self._containers: dict[str, InMemoryCacheContainer] = {}

    def open(self, name: str) -> InMemoryCacheContainer:
        if name not in self._containers:
            self._containers[name] = InMemoryCacheContainer(name)
        return self._containers[name]

    def keys(self) -> list[str]:
        return list(self._containers)

    def delete(self, name: str) -> bool:
        return self._containers.pop(name, None) is not None


# -----------------------------
# Redis backend
# -----------------------------
class RedisCacheContainer:
    """A cache container stored as one Redis hash: field = URL, value = JSON response."""

    def __init__(self, redis_client: Redis, name: str, key: str) -> None:
        self._redis: Redis = redis_client
        self.name = name
        self._key = key

    def match(self, url: str) -> AssetResponse | None:
        raw = self._redis.hget(self._key, url)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return AssetResponse.from_dict(json.loads(str(raw)), from_cache=True)

    def put(self, url: str, response: AssetResponse) -> None:
        self._redis.hset(self._key, url, json.dumps(response.to_dict()))

    def keys(self) -> list[str]:
        fields = self._redis.hkeys(self._key)
        return [k.decode("utf-8") if isinstance(k, bytes) else str(k) for k in fields]


class RedisCacheStorage:
    """
    Cache storage shared between worker processes through Redis.

    Container names are tracked in a set so stale versions can be listed and
    deleted on activation.

    Args:
        redis_client (Redis): A configured Redis client instance.
        namespace (str): Key namespace/prefix for generated keys.
    """

    def __init__(self, redis_client: Redis, *, namespace: str = "asset-cache") -> None:
        self._redis: Redis = redis_client
        self._namespace: str = namespace.rstrip(":")

    @property
    def index_key(self) -> str:
        return f"{self._namespace}:containers"

    def container_key(self, name: str) -> str:
        return f"{self._namespace}:container:{name}"

    def open(self, name: str) -> RedisCacheContainer:
        self._redis.sadd(self.index_key, name)
        return RedisCacheContainer(self._redis, name, self.container_key(name))

    def keys(self) -> list[str]:
        names = self._redis.smembers(self.index_key)
        return sorted(n.decode("utf-8") if isinstance(n, bytes) else str(n) for n in names)

    def delete(self, name: str) -> bool:
        removed = self._redis.srem(self.index_key, name)
        self._redis.delete(self.container_key(name))
        return bool(removed)


def build_cache_storage(
    backend: str = "memory",
    redis_url: str | None = None,
    *,
    redis_client: Redis | None = None,
    namespace: str = "asset-cache",
) -> CacheStorage:
    """
    Factory for the configured cache storage backend.

    Pass either `redis_url` or an existing `redis_client` for the Redis backend.
    """
    if backend == "memory":
        return InMemoryCacheStorage()
    if backend == "redis":
        if redis_client is None:
            if not redis_url:
                raise ValueError("redis_url or redis_client is required for the redis backend")
            redis_client = Redis.from_url(redis_url, decode_responses=True)
        return RedisCacheStorage(redis_client, namespace=namespace)
    raise ValueError(f"Unknown cache backend: {backend}")
