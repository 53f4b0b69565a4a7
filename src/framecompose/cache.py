"""Content-addressed LRU cache.

An explicitly owned cache object: whoever creates it decides its size and
when to invalidate it. Keys are SHA-256 hashes of the canonical JSON form of
the content, so equal content maps to the same entry regardless of dict
ordering.
"""

import hashlib
import json
from collections import OrderedDict


DEFAULT_MAX_ENTRIES = 64


def content_hash(content) -> str:
    """SHA-256 hex digest of content serialized as canonical JSON."""
    payload = json.dumps(content, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ContentCache:
    """Least-recently-used cache keyed by content hash."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, default=None):
        """Return the cached value and mark it most recently used."""
        if key not in self._entries:
            self.misses += 1
            return default
        self.hits += 1
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: str, value) -> None:
        """Store a value, evicting the least recently used entry when full."""
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def get_or_compute(self, content, compute):
        """Return the cached value for content, computing and storing it on a miss."""
        key = content_hash(content)
        if key in self._entries:
            return self.get(key)
        self.misses += 1
        value = compute()
        self.put(key, value)
        return value

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
