import gc
import weakref
from datetime import datetime, timedelta, timezone

import pytest

from finledger.database import create_session_factory
from finledger.errors import StorageError
from finledger.services.event_store import EventStore
from finledger.services.recent_activity import RECENT_ACTIVITY_KEY, RecentActivityIndex

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_append_puts_newest_first(store, make_record):
    index = RecentActivityIndex(store, limit=5)
    for i in range(3):
        index.append(make_record(id=f"TXN_{i}", created_at=BASE + timedelta(minutes=i)))

    assert [r.id for r in index.list()] == ["TXN_2", "TXN_1", "TXN_0"]
    assert len(index) == 3


def test_append_truncates_oldest_beyond_limit(store, make_record):
    index = RecentActivityIndex(store, limit=3)
    for i in range(5):
        index.append(make_record(id=f"TXN_{i}", created_at=BASE + timedelta(minutes=i)))

    assert [r.id for r in index.list()] == ["TXN_4", "TXN_3", "TXN_2"]
    value, _ = store.get_index(RECENT_ACTIVITY_KEY)
    assert len(value) == 3


def test_late_older_record_lands_in_order(store, make_record):
    index = RecentActivityIndex(store, limit=3)
    index.append(make_record(id="TXN_new", created_at=BASE + timedelta(hours=2)))
    index.append(make_record(id="TXN_old", created_at=BASE))
    index.append(make_record(id="TXN_mid", created_at=BASE + timedelta(hours=1)))

    assert [r.id for r in index.list()] == ["TXN_new", "TXN_mid", "TXN_old"]

    # Full list: anything older than every entry falls straight off the tail
    index.append(make_record(id="TXN_ancient", created_at=BASE - timedelta(days=1)))
    assert [r.id for r in index.list()] == ["TXN_new", "TXN_mid", "TXN_old"]


def test_append_is_idempotent_per_id(store, make_record):
    index = RecentActivityIndex(store)
    record = make_record(id="TXN_1")

    assert index.append(record) is True
    assert index.append(record) is False
    assert [r.id for r in index.list()] == ["TXN_1"]


def test_list_does_not_write(store, make_record):
    index = RecentActivityIndex(store)
    index.append(make_record(id="TXN_1"))
    _, version_before = store.get_index(RECENT_ACTIVITY_KEY)

    index.list()
    index.list()

    assert store.get_index(RECENT_ACTIVITY_KEY)[1] == version_before


def test_list_returns_record_snapshots(store, make_record):
    index = RecentActivityIndex(store)
    original = make_record(id="TXN_1", details={"description": "Groceries"})
    index.append(original)

    (snapshot,) = index.list()

    assert snapshot.id == original.id
    assert snapshot.amount == original.amount
    assert snapshot.created_at == original.created_at
    assert snapshot.description == "Groceries"


def test_append_retries_lost_cas_then_gives_up(store, make_record, monkeypatch):
    index = RecentActivityIndex(store)
    calls = []

    def always_lose(key, value, expected_version):
        calls.append(expected_version)
        return False

    monkeypatch.setattr(store, "put_index", always_lose)

    with pytest.raises(StorageError):
        index.append(make_record())
    assert len(calls) > 1


def test_limit_must_be_positive(store):
    with pytest.raises(ValueError):
        RecentActivityIndex(store, limit=0)


def test_indexes_over_one_store_share_a_lock(store, engine):
    first, second = RecentActivityIndex(store), RecentActivityIndex(store)
    other_store = EventStore(create_session_factory(engine))

    assert first._lock is second._lock
    assert RecentActivityIndex(store, key="other")._lock is not first._lock
    assert RecentActivityIndex(other_store)._lock is not first._lock


def test_lock_registry_does_not_keep_stores_alive(engine):
    store = EventStore(create_session_factory(engine))
    RecentActivityIndex(store)
    ref = weakref.ref(store)

    del store
    gc.collect()

    assert ref() is None
