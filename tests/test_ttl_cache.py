"""
Tests for the lazy-expiry TTL cache.
"""

import random

from lumbertier.cache import TTLCache


class TestTTLCache:
    """Expiry and invalidation behaviour of TTLCache."""

    def test_get_returns_value_within_ttl(self, clock):
        cache = TTLCache(clock=clock)
        cache.set('tournament:42', {'name': 'Demo Open'}, ttl=300)

        assert cache.get('tournament:42') == {'name': 'Demo Open'}
        clock.advance(300)
        assert cache.get('tournament:42') == {'name': 'Demo Open'}

    def test_get_after_ttl_returns_absent_and_deletes(self, clock):
        cache = TTLCache(clock=clock)
        cache.set('player:p1', 'Scottie', ttl=60)

        clock.advance(60.001)

        assert cache.get('player:p1') is None
        assert len(cache) == 0

    def test_default_for_absent_key(self, clock):
        cache = TTLCache(clock=clock)
        sentinel = object()
        assert cache.get('missing', sentinel) is sentinel

    def test_default_ttl_applies_when_none_given(self, clock):
        cache = TTLCache(default_ttl=120, clock=clock)
        cache.set('k', 1)

        clock.advance(119)
        assert cache.get('k') == 1
        clock.advance(2)
        assert cache.get('k') is None

    def test_set_overwrites_value_and_expiry(self, clock):
        cache = TTLCache(clock=clock)
        cache.set('k', 'old', ttl=10)
        clock.advance(8)
        cache.set('k', 'new', ttl=10)
        clock.advance(8)

        assert cache.get('k') == 'new'

    def test_delete_and_clear(self, clock):
        cache = TTLCache(clock=clock)
        cache.set('a', 1)
        cache.set('b', 2)

        cache.delete('a')
        cache.delete('never-set')
        assert cache.get('a') is None
        assert cache.get('b') == 2

        cache.clear()
        assert cache.get('b') is None
        assert len(cache) == 0

    def test_never_returns_expired_entry(self, clock):
        """Random set/get/delete sequence checked against a reference model."""
        rng = random.Random(7)
        cache = TTLCache(clock=clock)
        expiries = {}
        keys = [f"k{i}" for i in range(5)]

        for step in range(2000):
            key = rng.choice(keys)
            op = rng.random()
            if op < 0.4:
                ttl = rng.uniform(0.5, 20)
                cache.set(key, step, ttl=ttl)
                expiries[key] = (clock() + ttl, step)
            elif op < 0.5:
                cache.delete(key)
                expiries.pop(key, None)
            else:
                value = cache.get(key)
                if key in expiries and clock() <= expiries[key][0]:
                    assert value == expiries[key][1]
                else:
                    assert value is None
            clock.advance(rng.uniform(0, 3))
