"""Tests for :mod:`autoreply.dedup`."""

from autoreply.dedup import RecentMessageCache


class _Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_second_sighting_within_ttl_is_a_duplicate():
    clock = _Clock()
    cache = RecentMessageCache(60, clock=clock)

    assert cache.check_and_add(("whatsapp", "wamid.1")) is False
    assert cache.check_and_add(("whatsapp", "wamid.1")) is True
    assert cache.check_and_add(("instagram", "wamid.1")) is False


def test_entries_expire_after_ttl():
    clock = _Clock()
    cache = RecentMessageCache(60, clock=clock)
    cache.check_and_add("k")

    clock.now = 61
    assert cache.check_and_add("k") is False


def test_cache_is_bounded():
    cache = RecentMessageCache(60, max_entries=3, clock=_Clock())
    for key in "abcd":
        cache.check_and_add(key)

    assert len(cache) == 3
    assert cache.check_and_add("a") is False
