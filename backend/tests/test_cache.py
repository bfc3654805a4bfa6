import fnmatch

import pytest
import redis

from redis_client import ORDER_KEY, RedisClient


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.down = False

    def ping(self):
        if self.down:
            raise redis.ConnectionError("down")
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)

    def keys(self, pattern):
        return [key for key in self.store if fnmatch.fnmatch(key, pattern)]

    def exists(self, key):
        return int(key in self.store)


@pytest.fixture()
def cache():
    client = RedisClient(enabled=True)
    client.client = FakeRedis()
    return client


@pytest.fixture()
def cached_client(client, cache, monkeypatch):
    monkeypatch.setattr("main.redis_client", cache)
    return client


def test_disabled_client_is_a_no_op():
    client = RedisClient(enabled=False)

    assert client.is_available() is False
    assert client.cache_menu([{"id": 1}]) is False
    assert client.get_cached_menu() is None
    assert client.get_cache_info() == {"status": "disabled"}


def test_unreachable_redis_degrades(cache):
    cache.client.down = True

    assert cache.cache_order(1, {"id": 1}) is False
    assert cache.get_cached_order(1) is None
    assert cache.get_cache_info() == {"status": "unavailable"}


def test_invalidate_all_orders(cache):
    cache.cache_order(1, {"id": 1})
    cache.cache_order(2, {"id": 2})
    cache.cache_menu([])

    assert cache.invalidate_all_orders_cache() is True
    assert cache.client.keys(ORDER_KEY.format("*")) == []
    assert cache.get_cache_info()["menu_cached"] is True


def test_menu_list_is_cached_and_invalidated(cached_client, cache):
    payload = {"name": "Burger", "price": 500, "description": "Beef", "preparation_time": 10}
    cached_client.post("/api/menu", json=payload)

    first = cached_client.get("/api/menu").json()
    assert len(first) == 1
    assert cache.get_cached_menu()[0]["name"] == "Burger"

    cached_client.post("/api/menu", json=dict(payload, name="Fries"))
    assert cache.get_cached_menu() is None
    assert len(cached_client.get("/api/menu").json()) == 2


def test_status_change_drops_cached_order(cached_client, cache):
    menu_item = cached_client.post(
        "/api/menu", json={"name": "Burger", "price": 500, "description": "Beef", "preparation_time": 10}
    ).json()
    order = cached_client.post("/api/orders", json={
        "customer_name": "Sara",
        "customer_phone": "0321",
        "customer_address": "Street 9",
        "items": [{"menu_item_id": menu_item["id"], "quantity": 1}],
    }).json()
    assert cache.get_cached_order(order["id"])["status"] == "pending"

    cached_client.put(f"/api/orders/{order['id']}/status", json={"status": "preparing"})
    assert cache.get_cached_order(order["id"]) is None
    assert cached_client.get(f"/api/orders/{order['id']}").json()["status"] == "preparing"


def test_cache_info_endpoint(cached_client, cache):
    cache.cache_order(7, {"id": 7})

    info = cached_client.get("/api/cache/info").json()

    assert info == {"status": "available", "menu_cached": False, "cached_orders_count": 1}


def test_dead_redis_is_not_retried_on_every_call(monkeypatch):
    attempts = []

    def fake_redis(**kwargs):
        attempts.append(kwargs)
        server = FakeRedis()
        server.down = True
        return server

    monkeypatch.setattr("redis_client.redis.Redis", fake_redis)
    client = RedisClient(enabled=True, retry_interval=60)

    assert client.get_cached_menu() is None
    assert client.cache_menu([]) is False
    assert client.invalidate_menu_cache() is False
    assert client.get_cached_order(1) is None

    assert len(attempts) == 1


def test_dead_redis_is_retried_after_interval(monkeypatch):
    attempts = []

    def fake_redis(**kwargs):
        attempts.append(kwargs)
        return FakeRedis()

    monkeypatch.setattr("redis_client.redis.Redis", fake_redis)
    client = RedisClient(enabled=True, retry_interval=0)
    client.mark_down()

    assert client.cache_menu([{"id": 1}]) is True
    assert len(attempts) == 1


def test_server_going_away_stops_pings(cache):
    pings = []
    original_ping = cache.client.ping

    def counting_ping():
        pings.append(1)
        return original_ping()

    cache.client.ping = counting_ping
    cache.client.down = True
    cache.retry_interval = 60

    assert cache.get_cached_menu() is None
    assert cache.get_cached_order(3) is None
    assert cache.invalidate_all_orders_cache() is False

    assert len(pings) == 1
    assert cache.client is None
