import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from finledger.database import check_connection, create_db_engine, create_session_factory, session_scope
from finledger.errors import ConflictError, NotFoundError, StorageError, ValidationError
from finledger.models import Category, Direction, LedgerRecord, RecordKind, RecordStatus
from finledger.services.event_store import EventStore


def test_put_then_get_round_trips_fields(store, make_record):
    store.put(make_record(id="TXN_1", details={"description": "Dinner split"}))

    loaded = store.get("TXN_1")

    assert loaded.kind == RecordKind.TRANSFER
    assert loaded.amount == Decimal("1000.00")
    assert loaded.description == "Dinner split"
    assert loaded.created_at.tzinfo is not None
    assert loaded.created_at == datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_put_duplicate_id_raises_conflict_and_keeps_original(store, make_record):
    store.put(make_record(id="TXN_1", counterparty="First"))

    with pytest.raises(ConflictError) as excinfo:
        store.put(make_record(id="TXN_1", counterparty="Second"))

    assert excinfo.value.record_id == "TXN_1"
    assert store.get("TXN_1").counterparty == "First"
    assert store.count() == 1


def test_put_duplicate_idempotency_key_reports_existing_id(store, make_record):
    store.put(make_record(id="TXN_1", idempotency_key="abc"))

    with pytest.raises(ConflictError) as excinfo:
        store.put(make_record(id="TXN_2", idempotency_key="abc"))

    assert excinfo.value.record_id == "TXN_1"
    assert store.find_by_idempotency_key("abc").id == "TXN_1"
    assert store.find_by_idempotency_key("missing") is None


def test_get_missing_record_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.get("TXN_nope")


def test_index_compare_and_swap(store):
    assert store.get_index("feed") == (None, 0)

    assert store.put_index("feed", ["a"], expected_version=0) is True
    assert store.get_index("feed") == (["a"], 1)

    # A second creator and a stale writer both lose without touching the value
    assert store.put_index("feed", ["b"], expected_version=0) is False
    assert store.put_index("feed", ["c"], expected_version=5) is False
    assert store.get_index("feed") == (["a"], 1)

    assert store.put_index("feed", ["a", "d"], expected_version=1) is True
    assert store.get_index("feed") == (["a", "d"], 2)


def test_update_status_settles_pending_once(store, make_record):
    store.put(make_record(id="REQ_1", kind=RecordKind.MONEY_REQUEST, status=RecordStatus.PENDING))

    settled = store.update_status("REQ_1", RecordStatus.COMPLETED)

    assert settled.status == RecordStatus.COMPLETED
    assert store.get("REQ_1").status == RecordStatus.COMPLETED
    with pytest.raises(ValidationError):
        store.update_status("REQ_1", RecordStatus.FAILED)


def test_concurrent_settlements_of_a_request_only_one_wins(store, make_record):
    for i in range(20):
        store.put(make_record(
            id=f"REQ_{i}",
            kind=RecordKind.MONEY_REQUEST,
            direction=Direction.INCOMING,
            category=Category.REQUEST,
            status=RecordStatus.PENDING,
        ))

    def settle(record_id, status, barrier):
        barrier.wait(timeout=10)
        try:
            return store.update_status(record_id, status).status
        except ValidationError:
            return None

    for i in range(20):
        record_id = f"REQ_{i}"
        barrier = threading.Barrier(2)
        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = list(pool.map(
                lambda status: settle(record_id, status, barrier),
                [RecordStatus.COMPLETED, RecordStatus.FAILED],
            ))

        winners = [o for o in outcomes if o is not None]
        assert len(winners) == 1
        assert store.get(record_id).status == winners[0]


def test_update_status_cannot_reopen_as_pending(store, make_record):
    store.put(make_record(id="REQ_1", kind=RecordKind.MONEY_REQUEST, status=RecordStatus.PENDING))

    with pytest.raises(ValidationError):
        store.update_status("REQ_1", RecordStatus.PENDING)


def test_update_status_of_missing_record(store):
    with pytest.raises(NotFoundError):
        store.update_status("REQ_missing", RecordStatus.COMPLETED)


def test_records_are_immutable_apart_from_status(engine, store, make_record):
    store.put(make_record(id="TXN_1"))
    factory = create_session_factory(engine)

    with pytest.raises(ValidationError):
        with session_scope(factory) as db:
            record = db.get(LedgerRecord, "TXN_1")
            record.amount = Decimal("1.00")

    assert store.get("TXN_1").amount == Decimal("1000.00")


def test_all_records_oldest_first(store, make_record):
    store.put(make_record(id="TXN_late", created_at=datetime(2024, 3, 1, tzinfo=timezone.utc)))
    store.put(make_record(id="TXN_early", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)))

    assert [r.id for r in store.all_records()] == ["TXN_early", "TXN_late"]


def test_missing_tables_surface_as_storage_error(tmp_path, make_record):
    bare = create_db_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    store = EventStore(create_session_factory(bare))

    with pytest.raises(StorageError):
        store.put(make_record())
    with pytest.raises(StorageError):
        store.get_index("feed")
    bare.dispose()


def test_check_connection(engine):
    assert check_connection(engine) is True
