"""Key-value store backends and protocol conformance."""

from __future__ import annotations

from travelsphere.adapters.flight import FlightApiClient, MockFlightApi
from travelsphere.adapters.hotel import MockHotelApi
from travelsphere.adapters.interfaces import FlightApi, HotelApi, ItineraryRecorder, KeyValueStore
from travelsphere.infrastructure.kv_store import InMemoryKeyValueStore, RedisKeyValueStore, get_kv_store, reset_kv_store
from travelsphere.services.itinerary import ItineraryService


class _FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.pinged = False

    def ping(self):
        self.pinged = True
        return True

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        self.data.pop(key, None)


def test_memory_store_roundtrip():
    store = InMemoryKeyValueStore()

    store.set("booking_session", "{}")
    assert store.get("booking_session") == "{}"
    assert len(store) == 1

    store.remove("booking_session")
    store.remove("booking_session")
    assert store.get("booking_session") is None


def test_redis_store_prefixes_keys_and_sets_ttl():
    client = _FakeRedis()
    store = RedisKeyValueStore("redis://unused", client=client, ttl=900)

    store.set("hotel_booking_session", "{\"a\":1}")

    assert client.pinged is True
    assert client.data == {"travelsphere:hotel_booking_session": "{\"a\":1}"}
    assert client.ttls["travelsphere:hotel_booking_session"] == 900
    assert store.get("hotel_booking_session") == "{\"a\":1}"
    store.remove("hotel_booking_session")
    assert store.get("hotel_booking_session") is None


def test_global_store_defaults_to_memory():
    store = get_kv_store()

    assert store.backend == "memory"
    assert get_kv_store() is store
    reset_kv_store()
    assert get_kv_store() is not store


def test_unusable_redis_url_falls_back_to_memory(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "not-a-redis-url")

    assert get_kv_store().backend == "memory"


def test_adapters_satisfy_protocols():
    assert isinstance(MockFlightApi(), FlightApi)
    assert isinstance(MockHotelApi(), HotelApi)
    assert issubclass(FlightApiClient, FlightApi)
    assert isinstance(InMemoryKeyValueStore(), KeyValueStore)
    assert isinstance(ItineraryService(), ItineraryRecorder)
