"""
Cache-Aside Store

Provides:
- Key/value stores with per-entry TTL (gzip file store, in-memory store)
- Versioned key builders for league and per-player entries
- JSON read/write helpers that never raise: a failed read counts as a miss,
  a failed write leaves the caller's fresh result uncached

Bumping a key's version does not delete anything. Entries under the old
version are simply never asked for again and expire through their TTL.
"""

from __future__ import annotations

import gzip
import hashlib
import json
import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _get_default_cache_dir() -> Path:
    """Default cache directory, overridable via LEAGUESIGHT_CACHE_DIR."""
    if env_cache := os.environ.get("LEAGUESIGHT_CACHE_DIR"):
        return Path(env_cache)
    return Path.home() / ".leaguesight" / "cache"


class CacheStatus(Enum):
    """Outcome of a cache-aside lookup, reported to clients in a header."""

    HIT = "HIT"
    MISS = "MISS"
    SKIP = "SKIP"
    ERROR = "ERROR"


def league_cache_key(namespace: str, competition_id: str, version: int) -> str:
    """Key of a competition's aggregate, e.g. ``uniliga_stats:<id>_v9``."""
    return f"{namespace}:{competition_id}_v{version}"


def player_cache_key(namespace: str, player_id: str) -> str:
    """Key of a player's last computed form, e.g. ``player_stats:<id>``."""
    return f"{namespace}:{player_id}"


@dataclass
class CacheEntry:
    """Index record of a stored value."""

    key: str
    created_at: float
    expires_at: float | None
    size: int = 0

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "size": self.size,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CacheEntry:
        return cls(
            key=data["key"],
            created_at=data["created_at"],
            expires_at=data.get("expires_at"),
            size=data.get("size", 0),
        )


@dataclass
class CacheStats:
    """Cache statistics."""

    total_entries: int
    total_size_bytes: int
    oldest_entry: datetime | None
    newest_entry: datetime | None
    hit_count: int = 0
    miss_count: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hit_count + self.miss_count
        return (self.hit_count / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "total_entries": self.total_entries,
            "total_size_bytes": self.total_size_bytes,
            "oldest_entry": self.oldest_entry.isoformat() if self.oldest_entry else None,
            "newest_entry": self.newest_entry.isoformat() if self.newest_entry else None,
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "hit_rate_pct": round(self.hit_rate, 1),
        }


class CacheStore:
    """
    Interface of a TTL key/value store holding serialized strings.

    Implementations may raise on I/O failure; callers that must not fail go
    through read_json/write_json.
    """

    def get(self, key: str) -> str | None:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def get_stats(self) -> CacheStats:
        raise NotImplementedError


class MemoryCacheStore(CacheStore):
    """In-process store. Thread-safe; contents are lost on restart."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: dict[str, tuple[str, CacheEntry]] = {}
        self._lock = threading.Lock()
        self._hit_count = 0
        self._miss_count = 0

    def get(self, key: str) -> str | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                self._miss_count += 1
                return None
            value, entry = item
            if entry.is_expired(self._clock()):
                del self._data[key]
                self._miss_count += 1
                return None
            self._hit_count += 1
            return value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        now = self._clock()
        entry = CacheEntry(
            key=key,
            created_at=now,
            expires_at=now + ttl_seconds if ttl_seconds else None,
            size=len(value.encode()),
        )
        with self._lock:
            self._data[key] = (value, entry)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._hit_count = 0
            self._miss_count = 0

    def get_stats(self) -> CacheStats:
        with self._lock:
            entries = [entry for _, entry in self._data.values()]
            return _build_stats(entries, self._hit_count, self._miss_count)


class FileCacheStore(CacheStore):
    """
    File-based store.

    Features:
    - gzip-compressed values, one file per key
    - JSON index with creation and expiry times
    - Expired entries are removed lazily on read and on every write
    """

    def __init__(self, cache_dir: Path | None = None, clock: Callable[[], float] = time.time):
        """
        Initialize the store.

        Args:
            cache_dir: Directory for cache storage
            clock: Time source returning epoch seconds
        """
        self.cache_dir = Path(cache_dir) if cache_dir else _get_default_cache_dir()
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.data_dir = self.cache_dir / "data"
        self.data_dir.mkdir(exist_ok=True)

        self.index_path = self.cache_dir / "index.json"
        self._index: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock

        self._hit_count = 0
        self._miss_count = 0

        self._load_index()

    def _load_index(self) -> None:
        """Load cache index from disk."""
        if self.index_path.exists():
            try:
                with open(self.index_path) as f:
                    data = json.load(f)
                self._index = {
                    k: CacheEntry.from_dict(v) for k, v in data.get("entries", {}).items()
                }
                logger.debug(f"Loaded cache index with {len(self._index)} entries")
            except (OSError, ValueError, KeyError) as e:
                logger.warning(f"Failed to load cache index: {e}")
                self._index = {}

    def _save_index(self) -> None:
        data = {"entries": {k: v.to_dict() for k, v in self._index.items()}}
        with open(self.index_path, "w") as f:
            json.dump(data, f, indent=2)

    def _get_data_path(self, key: str) -> Path:
        """Keys contain ':' so files are named by key hash."""
        digest = hashlib.sha256(key.encode()).hexdigest()
        return self.data_dir / f"{digest}.json.gz"

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._index.get(key)
            data_path = self._get_data_path(key)

            if entry is None or not data_path.exists():
                self._miss_count += 1
                return None

            if entry.is_expired(self._clock()):
                self._remove(key)
                self._save_index()
                self._miss_count += 1
                return None

            with gzip.open(data_path, "rt", encoding="utf-8") as f:
                value = f.read()

            self._hit_count += 1
            logger.debug(f"Cache hit for {key}")
            return value

    def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        now = self._clock()
        with self._lock:
            data_path = self._get_data_path(key)
            with gzip.open(data_path, "wt", encoding="utf-8") as f:
                f.write(value)

            self._index[key] = CacheEntry(
                key=key,
                created_at=now,
                expires_at=now + ttl_seconds if ttl_seconds else None,
                size=data_path.stat().st_size,
            )
            self._cleanup_expired(now)
            self._save_index()
            logger.debug(f"Cached {key} (ttl={ttl_seconds}s)")

    def delete(self, key: str) -> None:
        with self._lock:
            self._remove(key)
            self._save_index()

    def clear(self) -> None:
        with self._lock:
            for key in list(self._index):
                self._remove(key)
            self._hit_count = 0
            self._miss_count = 0
            self._save_index()
        logger.info("Cache cleared")

    def _remove(self, key: str) -> None:
        self._index.pop(key, None)
        self._get_data_path(key).unlink(missing_ok=True)

    def _cleanup_expired(self, now: float) -> None:
        expired = [k for k, e in self._index.items() if e.is_expired(now)]
        for key in expired:
            self._remove(key)
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired cache entries")

    def get_stats(self) -> CacheStats:
        with self._lock:
            return _build_stats(list(self._index.values()), self._hit_count, self._miss_count)


def _build_stats(entries: list[CacheEntry], hits: int, misses: int) -> CacheStats:
    created = [e.created_at for e in entries]
    return CacheStats(
        total_entries=len(entries),
        total_size_bytes=sum(e.size for e in entries),
        oldest_entry=datetime.fromtimestamp(min(created)) if created else None,
        newest_entry=datetime.fromtimestamp(max(created)) if created else None,
        hit_count=hits,
        miss_count=misses,
    )


def read_json(store: CacheStore | None, key: str) -> tuple[Any | None, CacheStatus]:
    """
    Read and decode a cached JSON document.

    Returns:
        (document, HIT), (None, MISS), or (None, ERROR) when the store or the
        stored data is unreadable
    """
    if store is None:
        return None, CacheStatus.MISS
    try:
        raw = store.get(key)
        if raw is None:
            return None, CacheStatus.MISS
        return json.loads(raw), CacheStatus.HIT
    except Exception as e:
        logger.error(f"Cache read failed for {key}: {e}")
        return None, CacheStatus.ERROR


def write_json(store: CacheStore | None, key: str, document: Any, ttl_seconds: int) -> bool:
    """Encode and store a JSON document. Returns False if it could not be cached."""
    if store is None:
        return False
    try:
        store.set(key, json.dumps(document), ttl_seconds)
        return True
    except Exception as e:
        logger.error(f"Cache write failed for {key}: {e}")
        return False


def create_store(backend: str = "file", directory: str | None = None) -> CacheStore:
    """Build the configured store backend ("file" or "memory")."""
    if backend == "memory":
        return MemoryCacheStore()
    if backend == "file":
        return FileCacheStore(Path(directory) if directory else None)
    raise ValueError(f"Unknown cache backend: {backend}")
