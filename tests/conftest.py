import pytest

from core.cache import CacheStore
from core.config import CacheSettings


class FakeClock:
    def __init__(self, initial: float = 0.0):
        self._value = initial

    def now(self) -> float:
        return self._value

    def advance(self, seconds: float) -> None:
        self._value += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_cache():
    created = []

    def factory(sweep_interval_seconds: float = 1000, time_func=None, **settings) -> CacheStore:
        kwargs = {"settings": CacheSettings(**settings)}
        if time_func is not None:
            kwargs["time_func"] = time_func
        cache = CacheStore(sweep_interval_seconds, **kwargs)
        created.append(cache)
        return cache

    yield factory

    for cache in created:
        cache.shutdown(timeout=5)
