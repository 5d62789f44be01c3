"""
Recent-Activity Index - bounded, newest-first feed of ledger records.

The whole list is stored as one value under ``RECENT_ACTIVITY_KEY`` and is
replaced wholesale on every append, so readers always see a complete prior
snapshot. Appends are serialized per key by an in-process lock, and the
store's compare-and-swap catches writers in other processes.
"""
import logging
import threading
import weakref
from datetime import datetime
from typing import Dict, List

from finledger.errors import StorageError
from finledger.models import LedgerRecord
from finledger.models.ledger_record import ensure_utc

from .event_store import EventStore

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_KEY = "recent_transactions"
DEFAULT_LIMIT = 50
MAX_CAS_ATTEMPTS = 10

# Locks live as long as their store
_store_locks: "weakref.WeakKeyDictionary[EventStore, Dict[str, threading.Lock]]" = weakref.WeakKeyDictionary()
_store_locks_guard = threading.Lock()


def _lock_for(store: EventStore, key: str) -> threading.Lock:
     with _store_locks_guard:
          locks = _store_locks.setdefault(store, {})
          return locks.setdefault(key, threading.Lock())


class RecentActivityIndex:
     """Newest-first list of at most ``limit`` records, persisted through the store."""

     def __init__(self, store: EventStore, limit: int = DEFAULT_LIMIT, key: str = RECENT_ACTIVITY_KEY):
          if limit < 1:
               raise ValueError("limit must be at least 1")
          self.store = store
          self.limit = limit
          self.key = key
          self._lock = _lock_for(store, key)

     def append(self, record: LedgerRecord) -> bool:
          """
          Insert ``record`` keeping created_at descending and drop the tail
          beyond ``limit``.

          Returns False when the record was already in the feed (retry of an
          earlier append). Raises StorageError if the CAS keeps losing.
          """
          entry = record.to_dict()
          with self._lock:
               for _ in range(MAX_CAS_ATTEMPTS):
                    current, version = self.store.get_index(self.key)
                    entries = list(current or [])
                    if any(item["id"] == entry["id"] for item in entries):
                         return False

                    entries.insert(_insert_position(entries, record), entry)
                    del entries[self.limit:]

                    if self.store.put_index(self.key, entries, expected_version=version):
                         return True
                    logger.debug("Lost CAS race on %s at version %s, retrying", self.key, version)

          logger.error("Giving up on %s after %s attempts", self.key, MAX_CAS_ATTEMPTS)
          raise StorageError(f"Concurrent updates to {self.key} did not settle")

     def list(self) -> List[LedgerRecord]:
          """Up to ``limit`` records, newest first."""
          current, _ = self.store.get_index(self.key)
          return [LedgerRecord.from_dict(item) for item in (current or [])[: self.limit]]

     def __len__(self) -> int:
          current, _ = self.store.get_index(self.key)
          return min(len(current or []), self.limit)


def _insert_position(entries: List[dict], record: LedgerRecord) -> int:
     # Ties go in front of existing entries: the later write is the newer one
     created_at = ensure_utc(record.created_at)
     for position, item in enumerate(entries):
          if ensure_utc(datetime.fromisoformat(item["createdAt"])) <= created_at:
               return position
     return len(entries)
