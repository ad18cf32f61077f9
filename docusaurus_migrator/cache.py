"""Content-addressed cache of converted documents.

Version trees are mostly copies of each other, so most documents are seen
several times with byte-identical source. The cache keys converted output by
the SHA-256 of the source text and keeps the first conversion for the rest of
the run.
"""

from dataclasses import dataclass
from typing import Optional

from .frontmatter import DocumentMetadata
from .issues import MigrationIssue


@dataclass(frozen=True)
class CacheEntry:
    content: str
    metadata: DocumentMetadata
    issues: tuple[MigrationIssue, ...]
    version: str  # version the content was produced for


class ContentCache:
    """Write-once map of content hash -> CacheEntry for a single run."""

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def lookup(self, digest: str) -> Optional[CacheEntry]:
        entry = self._entries.get(digest)
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def store(self, digest: str, entry: CacheEntry) -> bool:
        """Store an entry; returns False and keeps the old one if the hash is known."""
        if digest in self._entries:
            return False
        self._entries[digest] = entry
        return True

    def __contains__(self, digest: str) -> bool:
        return digest in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        return {
            'total_files': self.hits + self.misses,
            'unique_content': len(self._entries),
            'cache_hits': self.hits,
        }
