"""
LedgerRecord model - one immutable money-movement event.

Amounts are always stored unsigned and strictly positive; whether a record adds
to or subtracts from the balance is derived from its category and direction.
Only ``status`` may change after creation, and only out of PENDING.
"""
import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Enum, Numeric, String, event, inspect
from sqlalchemy.types import TypeDecorator

from finledger.errors import ValidationError
from .base import Base


class RecordKind(str, enum.Enum):
     """Type of money movement a record represents."""
     TRANSFER = "Transfer"
     MONEY_REQUEST = "MoneyRequest"
     BILL_PAYMENT = "BillPayment"


class RecordStatus(str, enum.Enum):
     """Settlement status."""
     COMPLETED = "Completed"
     PENDING = "Pending"
     FAILED = "Failed"


class Direction(str, enum.Enum):
     """Whether money leaves (OUTGOING) or reaches (INCOMING) the account holder."""
     OUTGOING = "Outgoing"
     INCOMING = "Incoming"


class Category(str, enum.Enum):
     """Spend/income classification used for budgets and icons."""
     FOOD = "Food"
     TRANSPORT = "Transport"
     ENTERTAINMENT = "Entertainment"
     SHOPPING = "Shopping"
     UTILITIES = "Utilities"
     HEALTHCARE = "Healthcare"
     INCOME = "Income"
     TRANSFER = "Transfer"
     BILLS = "Bills"
     REQUEST = "Request"


TERMINAL_STATUSES = frozenset({RecordStatus.COMPLETED, RecordStatus.FAILED})

# Columns that may change after insert
_MUTABLE_COLUMNS = frozenset({"status"})


def ensure_utc(ts: datetime) -> datetime:
     """SQLite drops tzinfo on read; treat naive timestamps as UTC."""
     if ts.tzinfo is None:
          return ts.replace(tzinfo=timezone.utc)
     return ts.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
     """DateTime that always comes back timezone-aware (UTC)."""
     impl = DateTime
     cache_ok = True

     def process_bind_param(self, value, dialect):
          return ensure_utc(value) if value is not None else None

     def process_result_value(self, value, dialect):
          return ensure_utc(value) if value is not None else None


class LedgerRecord(Base):
     """
     Canonical unit of ledger state, keyed by a generated string id.

     ``details`` maps to the ``metadata`` column (the attribute name is reserved
     by SQLAlchemy's declarative base) and holds kind-specific fields such as
     description, senderName, billType, provider and accountNumber.
     """
     __table_args__ = (
          CheckConstraint("amount > 0", name="ck_ledger_records_amount_positive"),
     )

     id = Column(String(64), primary_key=True)
     kind = Column(Enum(RecordKind, name="record_kind", create_constraint=True), nullable=False, index=True)
     amount = Column(Numeric(14, 2), nullable=False)
     direction = Column(
          Enum(Direction, name="record_direction", create_constraint=True),
          default=Direction.OUTGOING,
          nullable=False,
     )
     counterparty = Column(String(255), nullable=False)
     category = Column(Enum(Category, name="record_category", create_constraint=True), nullable=False, index=True)
     status = Column(
          Enum(RecordStatus, name="record_status", create_constraint=True),
          default=RecordStatus.COMPLETED,
          nullable=False,
          index=True,
     )
     created_at = Column(UTCDateTime(timezone=True), nullable=False, index=True)
     details = Column("metadata", JSON, nullable=False, default=dict)
     idempotency_key = Column(String(255), unique=True, nullable=True)

     def __repr__(self):
          return (
               f"<LedgerRecord(id={self.id}, kind='{self.kind.value}', amount={self.amount}, "
               f"status='{self.status.value}')>"
          )

     @property
     def description(self) -> str:
          return (self.details or {}).get("description", "")

     @property
     def is_pending(self) -> bool:
          return self.status == RecordStatus.PENDING

     def to_dict(self) -> Dict[str, Any]:
          """JSON-safe snapshot, as kept in the recent-activity index."""
          return {
               "id": self.id,
               "kind": self.kind.value,
               "amount": str(self.amount),
               "direction": self.direction.value,
               "counterparty": self.counterparty,
               "category": self.category.value,
               "status": self.status.value,
               "createdAt": ensure_utc(self.created_at).isoformat(),
               "metadata": dict(self.details or {}),
               "idempotencyKey": self.idempotency_key,
          }

     @classmethod
     def from_dict(cls, data: Dict[str, Any]) -> "LedgerRecord":
          return cls(
               id=data["id"],
               kind=RecordKind(data["kind"]),
               amount=Decimal(data["amount"]),
               direction=Direction(data.get("direction", Direction.OUTGOING.value)),
               counterparty=data["counterparty"],
               category=Category(data["category"]),
               status=RecordStatus(data["status"]),
               created_at=ensure_utc(datetime.fromisoformat(data["createdAt"])),
               details=dict(data.get("metadata") or {}),
               idempotency_key=data.get("idempotencyKey"),
          )


@event.listens_for(LedgerRecord, "before_update")
def _reject_immutable_changes(mapper, connection, target: LedgerRecord) -> None:
     state = inspect(target)
     changed = {
          attr.key for attr in state.attrs
          if attr.key not in _MUTABLE_COLUMNS and attr.history.has_changes()
     }
     if changed:
          raise ValidationError(
               f"Ledger record {target.id} is immutable; attempted to change {sorted(changed)}"
          )


def utcnow() -> datetime:
     return datetime.now(timezone.utc)


def default_category(kind: RecordKind, explicit: Optional[Category] = None) -> Category:
     if explicit is not None:
          return explicit
     return {
          RecordKind.TRANSFER: Category.TRANSFER,
          RecordKind.MONEY_REQUEST: Category.REQUEST,
          RecordKind.BILL_PAYMENT: Category.BILLS,
     }[kind]
