"""URL freshness decisions backed by the embedded store.

Each URL is keyed by its 64-bit FNV-1 fingerprint. ``check`` reports whether
the URL is new, was seen recently enough to skip, or is due for a re-fetch,
and updates the stored record in the same transaction.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from freshcrawl.db.kv_store import KVStore
from freshcrawl.models.freshness import (
    Decision,
    FreshnessRecord,
    TIME_MASK,
    UINT32_MAX,
)

logger = logging.getLogger(__name__)

BUCKET = "main"
DEFAULT_WEIGHT = 1
# just under one day, so truncation to 256s buckets can't push a page over early
STALE_AFTER = 86272

_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3
_UINT64_MASK = 0xFFFFFFFFFFFFFFFF


def fingerprint(url: str) -> int:
    """64-bit FNV-1 hash of the UTF-8 encoded URL."""
    h = _FNV64_OFFSET
    for b in url.encode("utf-8"):
        h = (h * _FNV64_PRIME) & _UINT64_MASK
        h ^= b
    return h


def fingerprint_key(url: str) -> bytes:
    return fingerprint(url).to_bytes(8, "big")


def truncate_time(t: float) -> int:
    return int(t) & UINT32_MAX & TIME_MASK


class FreshnessCache:
    def __init__(
        self,
        store: KVStore,
        *,
        clock: Callable[[], float] = time.time,
        weight: int = DEFAULT_WEIGHT,
    ) -> None:
        self.store = store
        self.clock = clock
        self.weight = weight

    def check(self, url: str) -> Decision:
        fp = fingerprint(url)
        key = fp.to_bytes(8, "big")
        now = truncate_time(self.clock())
        logger.info("ask %d %s", fp, url)

        with self.store.transaction() as tx:
            bucket = tx.bucket(BUCKET)
            record = FreshnessRecord.unpack(bucket.get(key))
            if record is None:
                bucket.put(key, FreshnessRecord(last_seen=now, weight=self.weight, hits=1).pack())
                logger.info("%s newly added", url)
                return Decision.NEW

            record.hits = min(record.hits + 1, UINT32_MAX)
            # a clock that moved backwards reads as fresh; last_seen never decreases
            if now - record.last_seen > STALE_AFTER:
                record.last_seen = now
                decision = Decision.STALE
            else:
                decision = Decision.FRESH
                logger.info("%s no update required", url)
            bucket.put(key, record.pack())
            return decision

    def lookup(self, url: str) -> Optional[FreshnessRecord]:
        with self.store.transaction() as tx:
            return FreshnessRecord.unpack(tx.bucket(BUCKET).get(fingerprint_key(url)))
