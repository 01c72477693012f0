import threading

import pytest

from conftest import FakeClock
from tokenfees.services.market.cache import TtlCache


class Loader:
    def __init__(self, value="v"):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return f"{self.value}{self.calls}"


def test_fresh_entry_never_reloads():
    clock = FakeClock()
    cache = TtlCache(300, clock=clock)
    load = Loader()
    assert cache.get_or_load("k", load) == "v1"
    clock.advance(299)
    assert cache.get_or_load("k", load) == "v1"
    assert load.calls == 1


def test_entry_at_or_past_ttl_reloads():
    clock = FakeClock()
    cache = TtlCache(300, clock=clock)
    load = Loader()
    cache.get_or_load("k", load)
    clock.advance(300)
    assert cache.get("k") is None
    assert cache.get_or_load("k", load) == "v2"
    assert load.calls == 2


def test_loader_failure_propagates_and_stale_value_is_not_served():
    clock = FakeClock()
    cache = TtlCache(10, clock=clock)
    cache.put("k", "old")
    clock.advance(11)

    def boom():
        raise RuntimeError("provider down")

    with pytest.raises(RuntimeError):
        cache.get_or_load("k", boom)
    assert cache.get("k") is None
    assert cache.peek("k").value == "old"


def test_keys_are_independent():
    cache = TtlCache(60, clock=FakeClock())
    cache.put(("ethereum", 1), "a")
    cache.put(("ethereum", 7), "b")
    assert cache.get(("ethereum", 1)) == "a"
    assert cache.get(("ethereum", 7)) == "b"
    assert cache.invalidate(("ethereum", 1))
    assert cache.get(("ethereum", 1)) is None
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_invalid_ttl_rejected():
    with pytest.raises(ValueError):
        TtlCache(0)


def test_no_lock_held_during_load():
    cache = TtlCache(60, stripes=1)
    started = threading.Event()
    release = threading.Event()

    def slow_loader():
        started.set()
        release.wait(5)
        return "slow"

    worker = threading.Thread(target=cache.get_or_load, args=("a", slow_loader))
    worker.start()
    assert started.wait(5)
    # same lock stripe as "a": must not block while the slow load is in flight
    cache.put("b", "fast")
    assert cache.get("b") == "fast"
    release.set()
    worker.join(5)
    assert cache.get("a") == "slow"
