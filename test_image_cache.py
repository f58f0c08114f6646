"""Unit tests for the bounded icon cache.

These tests check the capacity bound, LRU eviction order, and that concurrent
writers from several threads never lose an update.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from image_cache import ImageCache


def test_get_returns_exact_bytes_after_put():
    cache = ImageCache(capacity=2)
    cache.put("10d", b"rain-icon")

    assert cache.get("10d") == b"rain-icon"


def test_get_unknown_key_returns_none():
    assert ImageCache().get("01d") is None


def test_default_capacity_is_fifty():
    assert ImageCache().capacity == 50


def test_size_never_exceeds_capacity():
    """Inserting more distinct keys than the capacity keeps the cache bounded."""
    cache = ImageCache(capacity=5)
    for i in range(20):
        cache.put(f"icon-{i}", bytes([i]))
        assert len(cache) <= 5

    assert len(cache) == 5


def test_least_recently_used_entry_is_evicted():
    cache = ImageCache(capacity=2)
    cache.put("01d", b"a")
    cache.put("02d", b"b")
    cache.get("01d")  # 02d is now the least recently used
    cache.put("03d", b"c")

    assert cache.get("02d") is None
    assert cache.get("01d") == b"a"
    assert cache.get("03d") == b"c"


def test_put_existing_key_replaces_without_growing():
    cache = ImageCache(capacity=2)
    cache.put("01d", b"old")
    cache.put("01d", b"new")

    assert len(cache) == 1
    assert cache.get("01d") == b"new"


def test_clear_empties_cache():
    cache = ImageCache()
    cache.put("01d", b"a")
    cache.clear()

    assert len(cache) == 0
    assert "01d" not in cache


@pytest.mark.parametrize("capacity", [0, -1])
def test_non_positive_capacity_is_rejected(capacity):
    with pytest.raises(ValueError):
        ImageCache(capacity=capacity)


def test_empty_key_is_rejected():
    with pytest.raises(ValueError):
        ImageCache().put("", b"a")


def test_concurrent_puts_are_all_retrievable():
    """N concurrent writers with distinct keys each land in the cache."""
    num_keys = 200
    cache = ImageCache(capacity=num_keys)

    with ThreadPoolExecutor(max_workers=16) as executor:
        list(executor.map(lambda i: cache.put(f"icon-{i}", str(i).encode()), range(num_keys)))

    assert len(cache) == num_keys
    for i in range(num_keys):
        assert cache.get(f"icon-{i}") == str(i).encode()
