"""
Shared FastAPI dependencies.
"""
from typing import Optional

from fastapi import Header, Request

from finledger.services.ledger_service import Ledger


def get_ledger(request: Request) -> Ledger:
     """The Ledger handle owned by the running app (set in create_app)."""
     return request.app.state.ledger


def get_idempotency_key(
     idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
) -> Optional[str]:
     """Optional client retry key; the same key never records twice."""
     return idempotency_key or None
