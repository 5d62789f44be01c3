"""
Event Store - durable key/value persistence for ledger records.

Every write runs in its own transaction and is committed before the call
returns. A failed write rolls back completely, leaving prior state untouched.

Auxiliary aggregate keys (the recent-activity list) live in ``ledger_indexes``
and are written with compare-and-swap on a version column, so concurrent
writers can never interleave a read-modify-write.
"""
import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from finledger.database import session_scope
from finledger.errors import ConflictError, NotFoundError, StorageError, ValidationError
from finledger.models import LedgerIndex, LedgerRecord, RecordStatus
from finledger.models.ledger_record import TERMINAL_STATUSES

logger = logging.getLogger(__name__)


class EventStore:
     """Record and index persistence over a SQLAlchemy session factory."""

     def __init__(self, session_factory: sessionmaker):
          self._session_factory = session_factory

     # ------------------------------------------------------------------
     # Records
     # ------------------------------------------------------------------

     def put(self, record: LedgerRecord) -> LedgerRecord:
          """
          Persist a new record under its id.

          Raises:
               ConflictError: if the id (or idempotency key) is already stored.
               StorageError: on any other persistence failure.
          """
          try:
               with session_scope(self._session_factory) as db:
                    db.add(record)
                    db.flush()
                    db.expunge(record)
          except IntegrityError as exc:
               existing_id = self._conflicting_id(record)
               if existing_id is not None:
                    raise ConflictError(
                         f"Ledger record {existing_id} already exists", record_id=existing_id
                    ) from exc
               logger.error("Integrity failure writing record %s: %s", record.id, exc)
               raise StorageError("Failed to write ledger record") from exc
          except SQLAlchemyError as exc:
               logger.exception("Failed to write ledger record %s", record.id)
               raise StorageError("Failed to write ledger record") from exc
          return record

     def get(self, record_id: str) -> LedgerRecord:
          try:
               with session_scope(self._session_factory) as db:
                    record = db.get(LedgerRecord, record_id)
          except SQLAlchemyError as exc:
               logger.exception("Failed to read ledger record %s", record_id)
               raise StorageError("Failed to read ledger record") from exc
          if record is None:
               raise NotFoundError(f"Ledger record {record_id} not found")
          return record

     def find_by_idempotency_key(self, key: str) -> Optional[LedgerRecord]:
          try:
               with session_scope(self._session_factory) as db:
                    return db.scalars(
                         select(LedgerRecord).where(LedgerRecord.idempotency_key == key)
                    ).first()
          except SQLAlchemyError as exc:
               logger.exception("Failed to look up idempotency key")
               raise StorageError("Failed to read ledger record") from exc

     def update_status(self, record_id: str, status: RecordStatus) -> LedgerRecord:
          """
          Apply a settlement transition (PENDING -> COMPLETED/FAILED).

          The change is one conditional UPDATE on ``status = PENDING``, so of two
          concurrent settlements of the same record exactly one succeeds; the
          other gets ValidationError.
          """
          if status not in TERMINAL_STATUSES:
               raise ValidationError(f"Cannot move record {record_id} to {status.value}")
          try:
               with session_scope(self._session_factory) as db:
                    result = db.execute(
                         update(LedgerRecord)
                         .where(LedgerRecord.id == record_id, LedgerRecord.status == RecordStatus.PENDING)
                         .values(status=status)
                         .execution_options(synchronize_session=False)
                    )
                    record = db.get(LedgerRecord, record_id)
                    if record is None:
                         raise NotFoundError(f"Ledger record {record_id} not found")
                    if result.rowcount != 1:
                         raise ValidationError(f"Record {record_id} is already {record.status.value}")
                    return record
          except SQLAlchemyError as exc:
               logger.exception("Failed to update status of %s", record_id)
               raise StorageError("Failed to update ledger record") from exc

     def count(self) -> int:
          try:
               with session_scope(self._session_factory) as db:
                    return db.scalar(select(func.count()).select_from(LedgerRecord)) or 0
          except SQLAlchemyError as exc:
               raise StorageError("Failed to count ledger records") from exc

     def all_records(self) -> List[LedgerRecord]:
          """Every stored record, oldest first. Used for historical queries."""
          try:
               with session_scope(self._session_factory) as db:
                    return list(
                         db.scalars(
                              select(LedgerRecord).order_by(LedgerRecord.created_at, LedgerRecord.id)
                         )
                    )
          except SQLAlchemyError as exc:
               logger.exception("Failed to list ledger records")
               raise StorageError("Failed to read ledger records") from exc

     # ------------------------------------------------------------------
     # Aggregate keys
     # ------------------------------------------------------------------

     def get_index(self, key: str) -> Tuple[Optional[Any], int]:
          """Return ``(value, version)``; ``(None, 0)`` when the key was never written."""
          try:
               with session_scope(self._session_factory) as db:
                    row = db.get(LedgerIndex, key)
                    if row is None:
                         return None, 0
                    return row.value, row.version
          except SQLAlchemyError as exc:
               logger.exception("Failed to read index %s", key)
               raise StorageError(f"Failed to read index {key}") from exc

     def put_index(self, key: str, value: Any, expected_version: int) -> bool:
          """
          Compare-and-swap write of an aggregate key.

          Returns True when the value was stored, False when another writer
          got there first (the caller should re-read and retry).
          """
          try:
               with session_scope(self._session_factory) as db:
                    if expected_version == 0:
                         db.add(LedgerIndex(key=key, value=value, version=1))
                         db.flush()
                         return True
                    result = db.execute(
                         update(LedgerIndex)
                         .where(LedgerIndex.key == key, LedgerIndex.version == expected_version)
                         .values(value=value, version=expected_version + 1)
                    )
                    return result.rowcount == 1
          except IntegrityError:
               # Lost the race to create the key
               return False
          except SQLAlchemyError as exc:
               logger.exception("Failed to write index %s", key)
               raise StorageError(f"Failed to write index {key}") from exc

     def _conflicting_id(self, record: LedgerRecord) -> Optional[str]:
          try:
               with session_scope(self._session_factory) as db:
                    if db.get(LedgerRecord, record.id) is not None:
                         return record.id
                    if record.idempotency_key:
                         existing = db.scalars(
                              select(LedgerRecord.id).where(
                                   LedgerRecord.idempotency_key == record.idempotency_key
                              )
                         ).first()
                         return existing
          except SQLAlchemyError:
               logger.exception("Failed to resolve write conflict for %s", record.id)
          return None
