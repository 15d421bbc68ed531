from ledger.cache import TTLCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_value_expires_after_ttl():
    clock = FakeClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", 1)

    clock.now += 59
    assert cache.get("k") == 1
    assert cache.age("k") == 59

    clock.now += 1
    assert cache.get("k") is None
    assert "k" not in cache


def test_invalidate_one_or_all():
    cache = TTLCache(60, clock=FakeClock())
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    assert "a" not in cache and cache.get("b") == 2

    cache.invalidate()
    assert len(cache) == 0


def test_cached_none_is_distinguishable_from_missing():
    cache = TTLCache(60, clock=FakeClock())
    cache.set("k", None)
    assert "k" in cache
    assert cache.get("missing", "default") == "default"


def test_expired_entry_removed_concurrently_is_a_miss():
    cache = None

    class InvalidatingClock(FakeClock):
        armed = False

        def __call__(self):
            if self.armed:
                cache.invalidate()
            return self.now

    clock = InvalidatingClock()
    cache = TTLCache(60, clock=clock)
    cache.set("k", 1)

    clock.now += 61
    clock.armed = True
    assert cache.get("k") is None
    assert len(cache) == 0
