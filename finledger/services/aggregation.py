"""
Aggregation Engine - derived views for the dashboard and budget screens.

Everything here is a pure function of the records passed in (usually the
recent-activity feed, or the full store for historical trends). Nothing is
cached and nothing is written.

Sign convention: amounts are stored unsigned. A record adds to the balance when
its category is Income or its direction is Incoming; every other record
subtracts. Only Completed records have moved money, so Pending and Failed
records are ignored by balance, spend and trend figures.
"""
import enum
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence

from finledger.errors import ValidationError
from finledger.models import Category, Direction, LedgerRecord, RecordStatus
from finledger.models.ledger_record import ensure_utc

OVER_BUDGET_THRESHOLD = 100
NEAR_LIMIT_THRESHOLD = 75

ZERO = Decimal("0")


class BudgetStatus(str, enum.Enum):
     OVER_BUDGET = "over_budget"
     NEAR_LIMIT = "near_limit"
     ON_TRACK = "on_track"


class MonthlySpend(NamedTuple):
     month: date  # first day of the calendar month
     total_spent: Decimal


@dataclass(frozen=True)
class BudgetLine:
     category: Category
     limit: Decimal
     spent: Decimal
     utilization: int
     status: BudgetStatus

     @property
     def remaining(self) -> Decimal:
          return self.limit - self.spent


def _is_settled(record: LedgerRecord) -> bool:
     return record.status == RecordStatus.COMPLETED


def signed_amount(record: LedgerRecord) -> Decimal:
     """+amount for income or incoming money, -amount for everything else."""
     amount = Decimal(record.amount)
     if record.category == Category.INCOME or record.direction == Direction.INCOMING:
          return amount
     return -amount


def total_balance(records: Iterable[LedgerRecord]) -> Decimal:
     return sum((signed_amount(r) for r in records if _is_settled(r)), ZERO)


def income_and_expenses(records: Iterable[LedgerRecord]) -> Dict[str, Decimal]:
     """Totals of money in and money out (expenses reported as a positive figure)."""
     income = expenses = ZERO
     for record in records:
          if not _is_settled(record):
               continue
          value = signed_amount(record)
          if value > 0:
               income += value
          else:
               expenses -= value
     return {"income": income, "expenses": expenses}


def spend_by_category(records: Iterable[LedgerRecord], category: Category) -> Decimal:
     """
     Total of settled amounts in ``category``, regardless of direction.

     Pass spend categories only: for Income or Request this sums money received.
     """
     return sum(
          (Decimal(r.amount) for r in records if r.category == category and _is_settled(r)),
          ZERO,
     )


def category_breakdown(records: Iterable[LedgerRecord]) -> Dict[Category, Decimal]:
     """Outgoing spend per category, for the pie chart."""
     totals: Dict[Category, Decimal] = {}
     for record in records:
          if not _is_settled(record):
               continue
          value = signed_amount(record)
          if value < 0:
               totals[record.category] = totals.get(record.category, ZERO) - value
     return totals


def budget_utilization(spent, budget_limit) -> int:
     """
     Percentage of ``budget_limit`` already spent, rounded half-up.

     Raises:
          ValidationError: if the limit is zero or negative.
     """
     limit = Decimal(str(budget_limit))
     if limit <= 0:
          raise ValidationError("Budget limit must be greater than zero")
     ratio = Decimal(str(spent)) * 100 / limit
     return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def budget_status(utilization: int) -> BudgetStatus:
     if utilization >= OVER_BUDGET_THRESHOLD:
          return BudgetStatus.OVER_BUDGET
     if utilization >= NEAR_LIMIT_THRESHOLD:
          return BudgetStatus.NEAR_LIMIT
     return BudgetStatus.ON_TRACK


def budget_line(records: Sequence[LedgerRecord], category: Category, budget_limit) -> BudgetLine:
     spent = spend_by_category(records, category)
     utilization = budget_utilization(spent, budget_limit)
     return BudgetLine(
          category=category,
          limit=Decimal(str(budget_limit)),
          spent=spent,
          utilization=utilization,
          status=budget_status(utilization),
     )


def budget_overview(records: Iterable[LedgerRecord], budgets: Mapping[Category, Decimal]) -> List[BudgetLine]:
     snapshot = list(records)
     return [budget_line(snapshot, category, limit) for category, limit in budgets.items()]


def _month_start(ts: datetime) -> date:
     ts = ensure_utc(ts)
     return date(ts.year, ts.month, 1)


def _shift_month(month: date, offset: int) -> date:
     index = month.year * 12 + (month.month - 1) + offset
     return date(index // 12, index % 12 + 1, 1)


class MonthlyTrend:
     """
     Lazy, restartable series of MonthlySpend for ``num_months`` calendar
     months ending at the month of ``as_of``, oldest first.

     Iterating twice walks the same input again; no cursor is kept.
     """

     def __init__(self, records: Iterable[LedgerRecord], num_months: int, as_of: Optional[datetime] = None):
          if num_months < 1:
               raise ValidationError("num_months must be at least 1")
          self._records = records if isinstance(records, Sequence) else list(records)
          self.num_months = num_months
          self.last_month = _month_start(as_of or datetime.now(timezone.utc))
          self.first_month = _shift_month(self.last_month, -(num_months - 1))

     def __iter__(self) -> Iterator[MonthlySpend]:
          totals: Dict[date, Decimal] = {}
          for record in self._records:
               if not _is_settled(record):
                    continue
               value = signed_amount(record)
               if value >= 0:
                    continue
               month = _month_start(record.created_at)
               if self.first_month <= month <= self.last_month:
                    totals[month] = totals.get(month, ZERO) - value

          for offset in range(self.num_months):
               month = _shift_month(self.first_month, offset)
               yield MonthlySpend(month=month, total_spent=totals.get(month, ZERO))

     def __len__(self) -> int:
          return self.num_months


def monthly_trend(records: Iterable[LedgerRecord], num_months: int, as_of: Optional[datetime] = None) -> MonthlyTrend:
     return MonthlyTrend(records, num_months, as_of=as_of)


def search_records(
     records: Iterable[LedgerRecord],
     query: Optional[str] = None,
     category: Optional[Category] = None,
) -> List[LedgerRecord]:
     """Case-insensitive match on counterparty or description, optionally by category."""
     needle = (query or "").strip().lower()
     matches = []
     for record in records:
          if category is not None and record.category != category:
               continue
          if needle and needle not in record.counterparty.lower() and needle not in record.description.lower():
               continue
          matches.append(record)
     return matches
