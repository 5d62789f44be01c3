"""
Sample activity and budgets for local development and tests.

Nothing here is loaded implicitly: call ``seed_sample_activity(ledger)`` from a
test fixture, or start the API with ``SEED_SAMPLE_DATA=true``.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional

from finledger.models import Category, Direction

from .ledger_service import Confirmation, Ledger


class SampleActivity(NamedTuple):
     counterparty: str
     amount: Decimal
     category: Category
     direction: Direction
     description: str
     created_at: datetime


def _at(day: int, hour: int = 12) -> datetime:
     return datetime(2024, 1, day, hour, 0, tzinfo=timezone.utc)


SAMPLE_ACTIVITY: List[SampleActivity] = [
     SampleActivity("Jumia Order", Decimal("24999.00"), Category.SHOPPING, Direction.OUTGOING, "Online shopping", _at(9)),
     SampleActivity("EKEDC Bill", Decimal("18500.00"), Category.UTILITIES, Direction.OUTGOING, "Electricity bill", _at(10)),
     SampleActivity("Freelance - Paystack", Decimal("75000.00"), Category.INCOME, Direction.INCOMING, "Web design project", _at(11)),
     SampleActivity("Cafe Neo Lekki", Decimal("1200.00"), Category.FOOD, Direction.OUTGOING, "Morning coffee", _at(12, 8)),
     SampleActivity("Total Energies - Ikeja", Decimal("8750.00"), Category.TRANSPORT, Direction.OUTGOING, "Fuel purchase", _at(12, 17)),
     SampleActivity("Netflix Subscription", Decimal("2900.00"), Category.ENTERTAINMENT, Direction.OUTGOING, "Monthly streaming", _at(13)),
     SampleActivity("Salary - GTBank", Decimal("425000.00"), Category.INCOME, Direction.INCOMING, "Monthly salary deposit", _at(14)),
     SampleActivity("Shoprite Victoria Island", Decimal("15420.00"), Category.FOOD, Direction.OUTGOING, "Weekly groceries", _at(15)),
]

DEFAULT_BUDGETS: Dict[Category, Decimal] = {
     Category.FOOD: Decimal("120000"),
     Category.TRANSPORT: Decimal("45000"),
     Category.ENTERTAINMENT: Decimal("25000"),
     Category.SHOPPING: Decimal("60000"),
     Category.UTILITIES: Decimal("35000"),
     Category.HEALTHCARE: Decimal("20000"),
}


def seed_sample_activity(ledger: Ledger, activity: Optional[List[SampleActivity]] = None) -> List[Confirmation]:
     """
     Record the sample activity as completed transfers, oldest first.

     Each entry carries an idempotency key, so seeding twice is harmless.
     """
     confirmations = []
     for item in activity or SAMPLE_ACTIVITY:
          confirmations.append(
               ledger.record_transfer(
                    item.counterparty,
                    item.amount,
                    item.description,
                    category=item.category,
                    direction=item.direction,
                    created_at=item.created_at,
                    idempotency_key=f"seed:{item.counterparty}:{item.created_at.isoformat()}",
               )
          )
     return confirmations
