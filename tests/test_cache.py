from bgsubs.cache import TTLCache


class FakeClockCache(TTLCache):
    def __init__(self, ttl):
        super().__init__(ttl=ttl)
        self.now = 1000.0

    def _now(self):
        return self.now


def test_get_returns_value_before_expiry():
    cache = FakeClockCache(ttl=60)
    cache.set("k", [1, 2])
    cache.now += 59
    assert cache.get("k") == [1, 2]
    assert cache.has("k")


def test_expired_entry_is_a_miss_and_removed():
    cache = FakeClockCache(ttl=60)
    cache.set("k", "v")
    cache.now += 60
    assert cache.get("k") is None
    assert len(cache) == 0


def test_has_uses_same_expiry_rule():
    cache = FakeClockCache(ttl=10)
    cache.set("k", "v")
    cache.now += 11
    assert not cache.has("k")
    assert cache.get("missing") is None


def test_set_refreshes_expiry():
    cache = FakeClockCache(ttl=10)
    cache.set("k", "old")
    cache.now += 8
    cache.set("k", "new")
    cache.now += 8
    assert cache.get("k") == "new"


def test_delete_and_clear():
    cache = TTLCache(ttl=100)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.delete("a")
    cache.delete("never-set")
    assert not cache.has("a")
    assert cache.get("b") == 2
    cache.clear()
    assert len(cache) == 0
    assert cache.ttl == 100
