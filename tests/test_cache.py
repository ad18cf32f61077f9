"""
Tests for the content-addressed conversion cache.
"""

from docusaurus_migrator.cache import CacheEntry, ContentCache
from docusaurus_migrator.frontmatter import DocumentMetadata
from docusaurus_migrator.utils import content_hash


def _entry(content: str, version: str = "next") -> CacheEntry:
    return CacheEntry(content=content, metadata=DocumentMetadata(title="T"), issues=(), version=version)


class TestContentCache:
    def test_miss_then_hit(self):
        cache = ContentCache()
        digest = content_hash("# Doc\n")
        assert cache.lookup(digest) is None

        entry = _entry("converted")
        assert cache.store(digest, entry) is True
        assert cache.lookup(digest) is entry
        assert cache.stats() == {"total_files": 2, "unique_content": 1, "cache_hits": 1}

    def test_first_store_wins(self):
        cache = ContentCache()
        first, second = _entry("first"), _entry("second", version="v1")
        cache.store("abc", first)

        assert cache.store("abc", second) is False
        assert cache.lookup("abc") is first
        assert len(cache) == 1

    def test_contains_does_not_count(self):
        cache = ContentCache()
        cache.store("abc", _entry("x"))
        assert "abc" in cache
        assert "def" not in cache
        assert cache.hits == 0 and cache.misses == 0
