"""
Pydantic schemas for the dashboard, budget and trend views.
"""
from decimal import Decimal
from typing import Dict, List

from pydantic import ConfigDict, field_serializer

from finledger.services.aggregation import BudgetLine, BudgetStatus, MonthlySpend
from finledger.services.categories import CategoryStyle

from .ledger import CamelModel


class SummaryResponse(CamelModel):
     """Dashboard figures computed from the recent-activity feed."""
     balance: Decimal
     income: Decimal
     expenses: Decimal
     spend_by_category: Dict[str, Decimal]

     @field_serializer("balance", "income", "expenses")
     def _as_number(self, value: Decimal) -> float:
          return float(value)

     @field_serializer("spend_by_category")
     def _totals_as_numbers(self, value: Dict[str, Decimal]) -> Dict[str, float]:
          return {k: float(v) for k, v in value.items()}

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "balance": 428231.0,
                    "income": 500000.0,
                    "expenses": 71769.0,
                    "spendByCategory": {"Food": 16620.0, "Shopping": 24999.0},
               }
          }
     )


class BudgetLineResponse(CamelModel):
     category: str
     limit: Decimal
     spent: Decimal
     remaining: Decimal
     utilization: int
     status: BudgetStatus

     @field_serializer("limit", "spent", "remaining")
     def _as_number(self, value: Decimal) -> float:
          return float(value)

     @classmethod
     def from_line(cls, line: BudgetLine) -> "BudgetLineResponse":
          return cls(
               category=line.category.value,
               limit=line.limit,
               spent=line.spent,
               remaining=line.remaining,
               utilization=line.utilization,
               status=line.status,
          )


class BudgetOverviewResponse(CamelModel):
     budgets: List[BudgetLineResponse]
     total_budget: Decimal
     total_spent: Decimal

     @field_serializer("total_budget", "total_spent")
     def _as_number(self, value: Decimal) -> float:
          return float(value)


class TrendPoint(CamelModel):
     month: str  # YYYY-MM
     total_spent: Decimal

     @field_serializer("total_spent")
     def _as_number(self, value: Decimal) -> float:
          return float(value)

     @classmethod
     def from_spend(cls, point: MonthlySpend) -> "TrendPoint":
          return cls(month=point.month.strftime("%Y-%m"), total_spent=point.total_spent)


class TrendResponse(CamelModel):
     trend: List[TrendPoint]


class CategoryStyleResponse(CamelModel):
     category: str
     icon: str
     color: str

     @classmethod
     def from_style(cls, category: str, style: CategoryStyle) -> "CategoryStyleResponse":
          return cls(category=category, icon=style.icon, color=style.color)


class CategoryListResponse(CamelModel):
     categories: List[CategoryStyleResponse]
