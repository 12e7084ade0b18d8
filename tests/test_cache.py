import logging
from unittest.mock import MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from zemon.cache import CacheClient


def broken_redis():
    client = MagicMock()
    error = RedisConnectionError("connection refused")
    client.get.side_effect = error
    client.setex.side_effect = error
    client.delete.side_effect = error
    client.scan_iter.side_effect = error
    client.ping.side_effect = error
    client.pipeline.return_value.execute.side_effect = error
    return client


def test_set_then_get_round_trips_json(fake_redis):
    cache = CacheClient(fake_redis, default_ttl=30)
    cache.set("repos:abc", {"id": "abc", "stars": 3})

    assert cache.get("repos:abc") == {"id": "abc", "stars": 3}
    assert fake_redis.ttls["repos:abc"] == 30


def test_set_uses_explicit_ttl(fake_redis):
    cache = CacheClient(fake_redis, default_ttl=30)
    cache.set("news:1", [1, 2], ttl=5)
    assert fake_redis.ttls["news:1"] == 5


def test_get_logs_hit_and_miss(fake_redis, caplog):
    caplog.set_level(logging.INFO, logger="zemon.cache")
    cache = CacheClient(fake_redis)

    assert cache.get("ideas:missing") is None
    cache.set("ideas:present", {"ok": True})
    cache.get("ideas:present")

    assert "Cache MISS: ideas:missing" in caplog.text
    assert "Cache HIT: ideas:present" in caplog.text


def test_corrupt_entry_reads_as_miss(fake_redis):
    fake_redis.store["events:1"] = "{not json"
    assert CacheClient(fake_redis).get("events:1") is None


def test_unserializable_value_is_not_stored(fake_redis):
    cache = CacheClient(fake_redis)
    cache.set("store:item:1", {"when": object()})
    assert "store:item:1" not in fake_redis.store


def test_delete_pattern_only_removes_matching_keys(fake_redis):
    cache = CacheClient(fake_redis)
    for key in ("events:all:1:10:all:all", "events:all:2:10:all:all", "events:abc", "events:upcoming"):
        cache.set(key, {"key": key})

    removed = cache.delete_pattern("events:all:*")

    assert removed == 2
    assert sorted(fake_redis.store) == ["events:abc", "events:upcoming"]


def test_delete_pattern_without_matches(fake_redis):
    assert CacheClient(fake_redis).delete_pattern("repos:all:*") == 0


def test_get_many_preserves_order_and_misses(fake_redis):
    cache = CacheClient(fake_redis)
    cache.set("a", 1)
    cache.set("c", {"x": 3})

    assert cache.get_many(["a", "b", "c"]) == [1, None, {"x": 3}]
    assert cache.get_many([]) == []


def test_unavailable_redis_fails_open(caplog):
    cache = CacheClient(broken_redis())

    assert cache.get("repos:1") is None
    cache.set("repos:1", {"id": 1})
    cache.delete("repos:1")
    assert cache.delete_pattern("repos:all:*") == 0
    assert cache.get_many(["a", "b"]) == [None, None]
    assert cache.ping() is False
    assert "Redis get error for repos:1" in caplog.text
