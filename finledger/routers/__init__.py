"""
API routers for the ledger service.
"""
from .transactions import router as transactions_router
from .insights import router as insights_router

__all__ = [
     "transactions_router",
     "insights_router",
]
