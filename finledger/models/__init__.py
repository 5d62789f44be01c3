from .base import Base
from .ledger_record import (
     Category,
     Direction,
     LedgerRecord,
     RecordKind,
     RecordStatus,
)
from .ledger_index import LedgerIndex

__all__ = [
     "Base",
     "Category",
     "Direction",
     "LedgerRecord",
     "LedgerIndex",
     "RecordKind",
     "RecordStatus",
]
