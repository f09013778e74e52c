"""Embedded byte key-value store on diskcache.

Keys and values are opaque bytes grouped into named buckets. The cache lives
in a directory and never evicts. All access goes through
``KVStore.transaction()``, which wraps ``Cache.transact``: SQLite's write
lock is taken up front, so a read-modify-write inside one transaction cannot
interleave with another writer, whichever thread or process it comes from.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

import diskcache

logger = logging.getLogger(__name__)


class StoreUnavailable(RuntimeError):
    pass


class Bucket:
    def __init__(self, cache: diskcache.Cache, name: str) -> None:
        self._cache = cache
        self.name = name
        self._prefix = name.encode("utf-8") + b"\x00"

    def get(self, key: bytes) -> Optional[bytes]:
        return self._cache.get(self._prefix + key)

    def put(self, key: bytes, value: bytes) -> None:
        self._cache.set(self._prefix + key, value)


class Transaction:
    def __init__(self, cache: diskcache.Cache) -> None:
        self._cache = cache

    def bucket(self, name: str) -> Bucket:
        return Bucket(self._cache, name)


class KVStore:
    def __init__(self, cache: diskcache.Cache) -> None:
        self.cache = cache

    @property
    def path(self) -> str:
        return self.cache.directory

    @classmethod
    def open(cls, path: str, *, timeout: float = 30.0) -> "KVStore":
        """Create or open the store directory at ``path``; raises StoreUnavailable on failure."""
        try:
            cache = diskcache.Cache(path, timeout=timeout, eviction_policy="none")
        except (OSError, sqlite3.Error) as exc:
            raise StoreUnavailable(f"Failed to open store at '{path}': {exc}") from exc
        logger.info("opened store %s", path)
        return cls(cache)

    def close(self) -> None:
        self.cache.close()

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Run a read-write transaction; commits on success, rolls back on error."""
        # retry: wait for the write lock instead of raising diskcache.Timeout
        with self.cache.transact(retry=True):
            yield Transaction(self.cache)
