"""
Read-only dashboard and budget views computed by the aggregation engine.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from finledger.errors import StorageError
from finledger.models import Category
from finledger.schemas.aggregation import (
     BudgetLineResponse,
     BudgetOverviewResponse,
     CategoryListResponse,
     CategoryStyleResponse,
     SummaryResponse,
     TrendPoint,
     TrendResponse,
)
from finledger.schemas.ledger import ErrorResponse
from finledger.services import aggregation
from finledger.services.categories import CATEGORY_STYLES
from finledger.services.ledger_service import Ledger
from finledger.services.seed_data import DEFAULT_BUDGETS

from .dependencies import get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(tags=["insights"], responses={500: {"model": ErrorResponse}})


def _recent(ledger: Ledger):
     try:
          return ledger.list_recent()
     except StorageError as exc:
          logger.exception("Aggregation read error")
          raise HTTPException(status_code=500, detail="Failed to load activity") from exc


@router.get("/summary", response_model=SummaryResponse, summary="Dashboard totals")
def get_summary(ledger: Ledger = Depends(get_ledger)):
     records = _recent(ledger)
     totals = aggregation.income_and_expenses(records)
     return SummaryResponse(
          balance=aggregation.total_balance(records),
          income=totals["income"],
          expenses=totals["expenses"],
          spend_by_category={
               category.value: amount
               for category, amount in aggregation.category_breakdown(records).items()
          },
     )


@router.get("/budgets", response_model=BudgetOverviewResponse, summary="Budget overview")
def get_budgets(ledger: Ledger = Depends(get_ledger)):
     lines = aggregation.budget_overview(_recent(ledger), DEFAULT_BUDGETS)
     return BudgetOverviewResponse(
          budgets=[BudgetLineResponse.from_line(line) for line in lines],
          total_budget=sum((line.limit for line in lines), Decimal("0")),
          total_spent=sum((line.spent for line in lines), Decimal("0")),
     )


@router.get(
     "/budgets/{category}",
     response_model=BudgetLineResponse,
     responses={400: {"model": ErrorResponse}},
     summary="Utilization of one category budget",
)
def get_budget(
     category: Category,
     limit: Optional[Decimal] = Query(None, description="Budget limit; defaults to the configured budget"),
     ledger: Ledger = Depends(get_ledger),
):
     if limit is None:
          limit = DEFAULT_BUDGETS.get(category)
          if limit is None:
               raise HTTPException(status_code=400, detail=f"No budget configured for {category.value}")
     line = aggregation.budget_line(_recent(ledger), category, limit)
     return BudgetLineResponse.from_line(line)


@router.get("/trend", response_model=TrendResponse, summary="Monthly spend trend")
def get_trend(
     months: int = Query(6, ge=1, le=24),
     as_of: Optional[date] = Query(None, alias="asOf", description="Last month of the series; defaults to today"),
     ledger: Ledger = Depends(get_ledger),
):
     try:
          records = ledger.all_records()
     except StorageError as exc:
          logger.exception("Trend read error")
          raise HTTPException(status_code=500, detail="Failed to load activity") from exc
     end = datetime(as_of.year, as_of.month, as_of.day, tzinfo=timezone.utc) if as_of else None
     trend = aggregation.monthly_trend(records, months, as_of=end)
     return TrendResponse(trend=[TrendPoint.from_spend(point) for point in trend])


@router.get("/categories", response_model=CategoryListResponse, summary="Category icons and colors")
def list_categories():
     return CategoryListResponse(
          categories=[
               CategoryStyleResponse.from_style(category.value, style)
               for category, style in CATEGORY_STYLES.items()
          ]
     )
