"""Tests for the diff cache."""

from __future__ import annotations

import threading

import pytest

from screenshot_compare.cache import DiffCache


class TestDiffCache:
    def test_miss_returns_none(self):
        assert DiffCache().lookup("abc") is None

    def test_store_then_lookup(self):
        cache = DiffCache()
        cache.store("abc", 42)
        assert cache.lookup("abc") == 42
        assert "abc" in cache
        assert len(cache) == 1

    def test_zero_is_a_hit(self):
        cache = DiffCache()
        cache.store("abc", 0)
        assert cache.lookup("abc") == 0

    def test_store_overwrites(self):
        cache = DiffCache({"abc": 1})
        cache.store("abc", 2)
        assert cache.lookup("abc") == 2

    def test_integral_float_is_accepted(self):
        cache = DiffCache()
        cache.store("abc", 7.0)  # type: ignore[arg-type]
        assert cache.lookup("abc") == 7
        assert isinstance(cache.lookup("abc"), int)

    @pytest.mark.parametrize("bad", [-1, 1.5, float("nan"), "3", None, True])
    def test_store_rejects_invalid_counts(self, bad):
        with pytest.raises(ValueError, match="non-negative integer"):
            DiffCache().store("abc", bad)

    def test_to_dict_is_a_copy(self):
        cache = DiffCache({"abc": 1})
        snapshot = cache.to_dict()
        snapshot["def"] = 2
        assert "def" not in cache

    def test_from_mapping_skips_invalid_entries(self):
        cache = DiffCache.from_mapping({"good": 3, "neg": -1, "text": "x", "nan": float("nan")})
        assert cache.to_dict() == {"good": 3}

    def test_concurrent_stores_are_not_lost(self):
        cache = DiffCache()

        def writer(offset: int) -> None:
            for i in range(500):
                cache.store(f"{offset}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 8 * 500
        assert cache.lookup("7-499") == 499
