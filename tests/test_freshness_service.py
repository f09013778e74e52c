import threading

from freshcrawl.db.kv_store import KVStore
from freshcrawl.models.freshness import Decision, FreshnessRecord
from freshcrawl.services.freshness_service import (
    BUCKET,
    STALE_AFTER,
    FreshnessCache,
    fingerprint,
    fingerprint_key,
    truncate_time,
)

T0 = 1_700_000_000  # 0x6553F100, already aligned to a 256s bucket


class _Clock:
    def __init__(self, t):
        self.t = t

    def __call__(self):
        return self.t


def _cache(tmp_path, clock, **kwargs):
    store = KVStore.open(str(tmp_path / "fresh"))
    return FreshnessCache(store, clock=clock, **kwargs)


def test_fingerprint_is_fnv1_64():
    assert fingerprint("") == 0xCBF29CE484222325
    assert fingerprint("a") == 0xAF63BD4C8601B7BE
    assert fingerprint_key("a") == bytes.fromhex("af63bd4c8601b7be")


def test_truncate_time_masks_low_byte():
    assert truncate_time(T0 + 255.9) == T0
    assert truncate_time(T0 + 256) == T0 + 256


def test_record_layout():
    rec = FreshnessRecord(last_seen=0x01020304, weight=7, hits=5)
    packed = rec.pack()
    assert packed == bytes([0x01, 0x02, 0x03, 0x07, 0x00, 0x00, 0x00, 0x05])
    back = FreshnessRecord.unpack(packed)
    assert back == FreshnessRecord(last_seen=0x01020300, weight=7, hits=5)
    assert FreshnessRecord.unpack(b"\x00" * 7) is None
    assert FreshnessRecord.unpack(None) is None


def test_new_then_fresh_then_stale(tmp_path):
    clock = _Clock(T0)
    cache = _cache(tmp_path, clock)
    url = "http://example.com/page"

    assert cache.check(url) is Decision.NEW
    rec = cache.lookup(url)
    assert rec == FreshnessRecord(last_seen=T0, weight=1, hits=1)

    clock.t = T0 + 100
    assert cache.check(url) is Decision.FRESH
    rec = cache.lookup(url)
    assert rec.hits == 2
    assert rec.last_seen == T0

    # exactly at the threshold is still fresh
    clock.t = T0 + STALE_AFTER
    assert cache.check(url) is Decision.FRESH
    assert cache.lookup(url).last_seen == T0

    clock.t = T0 + STALE_AFTER + 256
    assert cache.check(url) is Decision.STALE
    rec = cache.lookup(url)
    assert rec.hits == 4
    assert rec.last_seen == T0 + STALE_AFTER + 256


def test_weight_is_preserved_across_updates(tmp_path):
    clock = _Clock(T0)
    store = KVStore.open(str(tmp_path / "fresh"))
    url = "http://example.com/weighted"
    with store.transaction() as tx:
        tx.bucket(BUCKET).put(fingerprint_key(url), FreshnessRecord(T0, 9, 3).pack())

    cache = FreshnessCache(store, clock=clock, weight=1)
    clock.t = T0 + 2 * STALE_AFTER
    assert cache.check(url) is Decision.STALE
    rec = cache.lookup(url)
    assert rec.weight == 9
    assert rec.hits == 4


def test_malformed_record_is_overwritten_as_new(tmp_path):
    clock = _Clock(T0)
    store = KVStore.open(str(tmp_path / "fresh"))
    url = "http://example.com/broken"
    with store.transaction() as tx:
        tx.bucket(BUCKET).put(fingerprint_key(url), b"\x01\x02\x03")

    cache = FreshnessCache(store, clock=clock)
    assert cache.check(url) is Decision.NEW
    assert cache.lookup(url) == FreshnessRecord(last_seen=T0, weight=1, hits=1)


def test_clock_going_backwards_is_fresh(tmp_path):
    clock = _Clock(T0)
    cache = _cache(tmp_path, clock)
    url = "http://example.com/skew"
    cache.check(url)
    clock.t = T0 - 10 * STALE_AFTER
    assert cache.check(url) is Decision.FRESH
    assert cache.lookup(url).last_seen == T0


def test_records_survive_reopen(tmp_path):
    path = str(tmp_path / "fresh")
    clock = _Clock(T0)
    FreshnessCache(KVStore.open(path), clock=clock).check("http://example.com/")
    again = FreshnessCache(KVStore.open(path), clock=clock)
    assert again.check("http://example.com/") is Decision.FRESH


def test_concurrent_checks_do_not_lose_updates(tmp_path):
    cache = _cache(tmp_path, _Clock(T0))
    url = "http://example.com/hot"
    errors = []

    def worker():
        try:
            for _ in range(5):
                cache.check(url)
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert cache.lookup(url).hits == 40
