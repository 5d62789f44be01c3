from .event_store import EventStore
from .recent_activity import RecentActivityIndex, RECENT_ACTIVITY_KEY
from .ledger_service import (
     Confirmation,
     Ledger,
     generate_record_id,
     normalize_amount,
)

__all__ = [
     "EventStore",
     "RecentActivityIndex",
     "RECENT_ACTIVITY_KEY",
     "Confirmation",
     "Ledger",
     "generate_record_id",
     "normalize_amount",
]
