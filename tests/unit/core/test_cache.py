import sqlite3

import pytest
import redis

from tipi.core.cache import RedisCache, SQLiteCache, get_cache
from tipi.core.cache import factory as cache_factory
from tipi.core.config import TipiConfig


class FakeClock:
    def __init__(self, now_ms: int = 1_700_000_000_000):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float):
        self.now_ms += int(seconds * 1000)


class FakeRedis:
    """Minimal stand-in for redis.Redis (decode_responses=True)"""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.ttls = {}
        self.fail = fail

    def ping(self):
        if self.fail:
            raise redis.ConnectionError("refused")
        return True

    def get(self, key):
        if self.fail:
            raise redis.ConnectionError("refused")
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)


class TestSQLiteCache:
    def setup_method(self):
        self.clock = FakeClock()

    def _cache(self, tmp_path, **kwargs):
        return SQLiteCache(tmp_path / "cache.sqlite", clock=self.clock, **kwargs)

    def test_set_then_get(self, tmp_path):
        cache = self._cache(tmp_path)
        cache.set("latestVersion", "1.2.0", 3600)
        assert cache.get("latestVersion") == "1.2.0"

    def test_value_absent_after_ttl(self, tmp_path):
        cache = self._cache(tmp_path)
        cache.set("k", "v", 10)

        self.clock.advance(9)
        assert cache.get("k") == "v"

        self.clock.advance(1)
        assert cache.get("k") is None

    def test_default_ttl_applies(self, tmp_path):
        cache = self._cache(tmp_path, default_ttl_seconds=60)
        cache.set("k", "v")

        self.clock.advance(59)
        assert cache.get("k") == "v"
        self.clock.advance(2)
        assert cache.get("k") is None

    def test_set_overwrites_value_and_ttl(self, tmp_path):
        cache = self._cache(tmp_path)
        cache.set("k", "old", 5)
        cache.set("k", "new", 100)

        self.clock.advance(50)
        assert cache.get("k") == "new"

    def test_delete(self, tmp_path):
        cache = self._cache(tmp_path)
        cache.set("k", "v", 100)
        cache.delete("k")
        cache.delete("never-set")
        assert cache.get("k") is None

    def test_set_purges_expired_rows(self, tmp_path):
        cache = self._cache(tmp_path)
        for i in range(50):
            cache.set(f"session:{i}", "user-1", 5)
            self.clock.advance(10)
        cache.set("latestVersion", "1.2.0", 3600)

        with sqlite3.connect(cache.db_path) as conn:
            keys = [row[0] for row in conn.execute("SELECT key FROM cache_entries")]
        assert keys == ["latestVersion"]

    def test_cleanup_expired_and_stats(self, tmp_path):
        cache = self._cache(tmp_path)
        cache.set("short", "v", 1)
        cache.set("long", "v", 100)
        self.clock.advance(2)

        assert cache.cleanup_expired() == 1
        cache.get("long")
        cache.get("short")

        stats = cache.get_stats()
        assert stats["backend"] == "sqlite"
        assert stats["entry_count"] == 1
        assert stats["hits"] == 1
        assert stats["misses"] == 1


class TestRedisCache:
    def test_set_uses_setex_with_prefix(self):
        client = FakeRedis()
        cache = RedisCache(client=client, default_ttl_seconds=300)

        cache.set("latestVersion", "1.2.0", 3600)
        cache.set("session:abc", "user-1")

        assert client.ttls == {"tipi:latestVersion": 3600, "tipi:session:abc": 300}
        assert cache.get("latestVersion") == "1.2.0"

    def test_delete(self):
        client = FakeRedis()
        cache = RedisCache(client=client)
        cache.set("k", "v", 10)
        cache.delete("k")
        assert cache.get("k") is None

    def test_redis_error_reads_as_absent(self):
        cache = RedisCache(client=FakeRedis(fail=True))
        assert cache.get("k") is None
        assert cache.get_stats()["misses"] == 1


def test_factory_uses_sqlite_without_redis_url(tmp_path):
    config = TipiConfig(root_folder=tmp_path, redis_url=None)
    cache = get_cache(config)
    assert isinstance(cache, SQLiteCache)


def test_factory_falls_back_when_redis_unreachable(tmp_path, monkeypatch):
    def unreachable(url, **kwargs):
        return RedisCache(url, client=FakeRedis(fail=True), **kwargs)

    monkeypatch.setattr(cache_factory, "RedisCache", unreachable)
    config = TipiConfig(root_folder=tmp_path, redis_url="redis://localhost:6379/0")

    cache = get_cache(config)
    assert isinstance(cache, SQLiteCache)


def test_factory_prefers_reachable_redis(tmp_path, monkeypatch):
    def reachable(url, **kwargs):
        return RedisCache(url, client=FakeRedis(), **kwargs)

    monkeypatch.setattr(cache_factory, "RedisCache", reachable)
    config = TipiConfig(root_folder=tmp_path, redis_url="redis://localhost:6379/0")

    assert isinstance(get_cache(config), RedisCache)
