from .ledger import (
     ErrorResponse,
     LedgerRecordResponse,
     PayBillRequest,
     RequestConfirmation,
     RequestMoneyRequest,
     SendMoneyRequest,
     TransactionConfirmation,
     TransactionListResponse,
     TransactionResponse,
)
from .aggregation import (
     BudgetLineResponse,
     BudgetOverviewResponse,
     CategoryListResponse,
     CategoryStyleResponse,
     SummaryResponse,
     TrendPoint,
     TrendResponse,
)

__all__ = [
     "ErrorResponse",
     "LedgerRecordResponse",
     "PayBillRequest",
     "RequestConfirmation",
     "RequestMoneyRequest",
     "SendMoneyRequest",
     "TransactionConfirmation",
     "TransactionListResponse",
     "TransactionResponse",
     "BudgetLineResponse",
     "BudgetOverviewResponse",
     "CategoryListResponse",
     "CategoryStyleResponse",
     "SummaryResponse",
     "TrendPoint",
     "TrendResponse",
]
