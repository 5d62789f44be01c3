"""Shared fixtures: every test gets its own file-backed SQLite ledger.

A file (rather than ``:memory:``) keeps all pooled connections and worker
threads looking at the same database.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from finledger.database import create_db_engine, init_db
from finledger.main import create_app
from finledger.models import Category, Direction, LedgerRecord, RecordKind, RecordStatus
from finledger.services.ledger_service import Ledger


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ledger.db'}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def ledger(engine):
    return Ledger.from_engine(engine)


@pytest.fixture
def store(ledger):
    return ledger.store


@pytest.fixture
def client(ledger):
    return TestClient(create_app(ledger=ledger, prefix="/api"))


@pytest.fixture
def make_record():
    """Build an unsaved LedgerRecord with sensible defaults."""

    def _make(**overrides):
        fields = dict(
            id="TXN_test",
            kind=RecordKind.TRANSFER,
            amount=Decimal("1000.00"),
            direction=Direction.OUTGOING,
            counterparty="Chioma",
            category=Category.TRANSFER,
            status=RecordStatus.COMPLETED,
            created_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
            details={"description": ""},
        )
        fields.update(overrides)
        return LedgerRecord(**fields)

    return _make
