"""
Ledger Service - validates money-movement intents and records them.

For every intent:
1. Validate the input (nothing is persisted on invalid input)
2. Build a canonical LedgerRecord with a freshly generated id
3. Persist it in the Event Store
4. Append it to the Recent-Activity Index (transfers and bill payments)
5. Return a confirmation with the id and a human-readable message

Retries are idempotent at the id level: a caller-supplied idempotency key maps
to a deterministic id, so a repeated call hits ConflictError in the store and
is answered with the record that is already there.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy.engine import Engine

from finledger.database import create_session_factory
from finledger.errors import ConflictError, ValidationError
from finledger.models import Category, Direction, LedgerRecord, RecordKind, RecordStatus
from finledger.models.ledger_record import default_category, ensure_utc, utcnow

from .event_store import EventStore
from .recent_activity import DEFAULT_LIMIT, RecentActivityIndex

logger = logging.getLogger(__name__)

ID_PREFIXES = {
     RecordKind.TRANSFER: "TXN",
     RecordKind.MONEY_REQUEST: "REQ",
     RecordKind.BILL_PAYMENT: "BILL",
}

# Fixed namespace so the same (kind, idempotency key) always yields the same id
IDEMPOTENCY_NAMESPACE = uuid.UUID("6f1d3c0e-4b8a-4f52-9a57-2c1e8d7b9f10")

CURRENCY_SYMBOL = "₦"
_CENTS = Decimal("0.01")
# Largest amount the Numeric(14, 2) amount column holds exactly
MAX_AMOUNT = Decimal("999999999999.99")


@dataclass(frozen=True)
class Confirmation:
     """Result of a successful recording."""
     id: str
     message: str
     record: LedgerRecord
     already_applied: bool = False


def generate_record_id(kind: RecordKind, idempotency_key: Optional[str] = None) -> str:
     """
     Build a record id: ``<PREFIX>_<32 hex chars>``.

     Without an idempotency key the suffix is a random UUID4; with one it is a
     UUID5 of the kind and key, so retries regenerate the same id.
     """
     if idempotency_key:
          suffix = uuid.uuid5(IDEMPOTENCY_NAMESPACE, f"{kind.value}:{idempotency_key}").hex
     else:
          suffix = uuid.uuid4().hex
     return f"{ID_PREFIXES[kind]}_{suffix}"


def normalize_amount(amount: Any) -> Decimal:
     """
     Coerce ``amount`` to a Decimal with two places (half-up).

     Raises:
          ValidationError: if the value is missing, not numeric, not finite,
               not strictly positive after rounding, or above MAX_AMOUNT.
     """
     if amount is None or isinstance(amount, bool):
          raise ValidationError("Amount is required")
     try:
          value = Decimal(str(amount).strip())
     except (InvalidOperation, ValueError):
          raise ValidationError(f"Invalid amount: {amount!r}") from None
     if not value.is_finite():
          raise ValidationError("Amount must be a finite number")
     # Checked before quantize, which overflows the context precision for huge values
     if value.adjusted() >= 12:
          raise ValidationError(
               "Amount must be greater than zero" if value < 0
               else f"Amount must not exceed {format_amount(MAX_AMOUNT)}"
          )
     value = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
     if value <= 0:
          raise ValidationError("Amount must be greater than zero")
     if value > MAX_AMOUNT:
          raise ValidationError(f"Amount must not exceed {format_amount(MAX_AMOUNT)}")
     return value


def format_amount(amount: Decimal) -> str:
     """``₦5,000`` for whole amounts, ``₦5,000.50`` otherwise."""
     if amount == amount.to_integral_value():
          return f"{CURRENCY_SYMBOL}{amount:,.0f}"
     return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def confirmation_message(record: LedgerRecord) -> str:
     amount = format_amount(record.amount)
     if record.kind == RecordKind.MONEY_REQUEST:
          return f"Request for {amount} sent to {record.counterparty}"
     if record.kind == RecordKind.BILL_PAYMENT:
          return f"{amount} paid to {record.counterparty} successfully"
     if record.direction == Direction.INCOMING:
          return f"{amount} received from {record.counterparty}"
     return f"{amount} sent to {record.counterparty} successfully"


def _require_text(value: Optional[str], field: str) -> str:
     if not isinstance(value, str) or not value.strip():
          raise ValidationError(f"{field} is required")
     return value.strip()


def _optional_text(value: Optional[str]) -> str:
     return (value or "").strip()


class Ledger:
     """
     Handle over one ledger: an Event Store plus its Recent-Activity Index.

     Several ledgers can live side by side (one per engine), which keeps tests
     isolated and avoids any module-level shared state.
     """

     def __init__(self, store: EventStore, index: Optional[RecentActivityIndex] = None, limit: int = DEFAULT_LIMIT):
          self.store = store
          self.index = index or RecentActivityIndex(store, limit=limit)

     @classmethod
     def from_engine(cls, engine: Engine, limit: int = DEFAULT_LIMIT) -> "Ledger":
          return cls(EventStore(create_session_factory(engine)), limit=limit)

     # ------------------------------------------------------------------
     # Intents
     # ------------------------------------------------------------------

     def record_transfer(
          self,
          recipient: str,
          amount: Any,
          description: Optional[str] = "",
          *,
          sender_name: Optional[str] = None,
          category: Optional[Category] = None,
          direction: Direction = Direction.OUTGOING,
          idempotency_key: Optional[str] = None,
          created_at: Optional[datetime] = None,
     ) -> Confirmation:
          """
          Record a completed transfer and add it to the recent-activity feed.

          ``category`` and ``direction`` default to an outgoing Transfer; seed
          loaders and imports pass them explicitly (e.g. an incoming salary).
          """
          counterparty = _require_text(recipient, "Recipient")
          value = normalize_amount(amount)

          record = self._build(
               RecordKind.TRANSFER,
               counterparty=counterparty,
               amount=value,
               status=RecordStatus.COMPLETED,
               direction=direction,
               category=default_category(RecordKind.TRANSFER, category),
               details={
                    "description": _optional_text(description),
                    "senderName": _optional_text(sender_name) or "You",
               },
               idempotency_key=idempotency_key,
               created_at=created_at,
          )
          confirmation = self._commit(record, in_feed=True)
          logger.info("Money sent successfully: %s to %s (%s)", value, counterparty, confirmation.id)
          return confirmation

     def record_request(
          self,
          requester: str,
          amount: Any,
          description: Optional[str] = "",
          *,
          idempotency_key: Optional[str] = None,
          created_at: Optional[datetime] = None,
     ) -> Confirmation:
          """
          Record a pending money request.

          Pending requests are kept out of the recent-activity feed, which only
          shows settled activity; they join it once settled as Completed.
          """
          counterparty = _require_text(requester, "Requester")
          value = normalize_amount(amount)

          record = self._build(
               RecordKind.MONEY_REQUEST,
               counterparty=counterparty,
               amount=value,
               status=RecordStatus.PENDING,
               direction=Direction.INCOMING,
               category=Category.REQUEST,
               details={"description": _optional_text(description)},
               idempotency_key=idempotency_key,
               created_at=created_at,
          )
          confirmation = self._commit(record, in_feed=False)
          logger.info("Money requested successfully: %s from %s (%s)", value, counterparty, confirmation.id)
          return confirmation

     def record_bill_payment(
          self,
          bill_type: str,
          provider: str,
          amount: Any,
          account_number: Optional[str] = "",
          *,
          idempotency_key: Optional[str] = None,
          created_at: Optional[datetime] = None,
     ) -> Confirmation:
          bill_type = _require_text(bill_type, "Bill type")
          provider = _require_text(provider, "Provider")
          value = normalize_amount(amount)

          record = self._build(
               RecordKind.BILL_PAYMENT,
               counterparty=provider,
               amount=value,
               status=RecordStatus.COMPLETED,
               direction=Direction.OUTGOING,
               category=Category.BILLS,
               details={
                    "description": f"{bill_type} - {provider}",
                    "billType": bill_type,
                    "provider": provider,
                    "accountNumber": _optional_text(account_number),
               },
               idempotency_key=idempotency_key,
               created_at=created_at,
          )
          confirmation = self._commit(record, in_feed=True)
          logger.info("Bill payment successful: %s - %s (%s)", bill_type, provider, confirmation.id)
          return confirmation

     def settle_request(self, record_id: str, outcome: RecordStatus) -> LedgerRecord:
          """
          Move a pending money request to COMPLETED or FAILED.

          Completed requests are appended to the recent-activity feed. Only the
          call that wins the status update gets that far; a second settlement
          raises ValidationError.
          """
          record = self.store.get(record_id)
          if record.kind != RecordKind.MONEY_REQUEST:
               raise ValidationError(f"Record {record_id} is not a money request")
          settled = self.store.update_status(record_id, outcome)
          if settled.status == RecordStatus.COMPLETED:
               self.index.append(settled)
          logger.info("Request %s settled as %s", record_id, settled.status.value)
          return settled

     # ------------------------------------------------------------------
     # Queries
     # ------------------------------------------------------------------

     def list_recent(self) -> List[LedgerRecord]:
          return self.index.list()

     def get_record(self, record_id: str) -> LedgerRecord:
          return self.store.get(record_id)

     def all_records(self) -> List[LedgerRecord]:
          return self.store.all_records()

     # ------------------------------------------------------------------
     # Internals
     # ------------------------------------------------------------------

     def _build(
          self,
          kind: RecordKind,
          *,
          idempotency_key: Optional[str],
          created_at: Optional[datetime],
          **fields: Any,
     ) -> LedgerRecord:
          key = _optional_text(idempotency_key) or None
          return LedgerRecord(
               id=generate_record_id(kind, key),
               kind=kind,
               idempotency_key=key,
               created_at=ensure_utc(created_at) if created_at else utcnow(),
               **fields,
          )

     def _commit(self, record: LedgerRecord, in_feed: bool) -> Confirmation:
          try:
               stored = self.store.put(record)
               already_applied = False
          except ConflictError as exc:
               stored = self.store.get(exc.record_id or record.id)
               if stored.kind != record.kind:
                    raise ValidationError("Idempotency key was already used for a different operation")
               logger.info("Record %s already applied, returning existing entry", stored.id)
               already_applied = True

          # Re-appending heals a retry interrupted between store and index
          if in_feed and stored.status == RecordStatus.COMPLETED:
               self.index.append(stored)
          return Confirmation(
               id=stored.id,
               message=confirmation_message(stored),
               record=stored,
               already_applied=already_applied,
          )
