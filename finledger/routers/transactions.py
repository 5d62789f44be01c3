"""
Money-movement API routes.

POST /send-money, /request-money, /pay-bills record intents through the
Ledger. GET /transactions serves the recent-activity feed (newest first, at
most 50 records). Input problems surface as 400 through the app-wide
ValidationError handler; storage failures become a 500 with a generic message.

An ``Authorization: Bearer`` header is accepted but not checked here.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from finledger.errors import StorageError
from finledger.models import Category
from finledger.schemas.ledger import (
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
from finledger.services.aggregation import search_records
from finledger.services.ledger_service import Ledger

from .dependencies import get_idempotency_key, get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(
     tags=["transactions"],
     responses={
          400: {"model": ErrorResponse},
          500: {"model": ErrorResponse},
     },
)


@router.post("/send-money", response_model=TransactionConfirmation, summary="Send money")
def send_money(
     body: SendMoneyRequest,
     ledger: Ledger = Depends(get_ledger),
     idempotency_key: Optional[str] = Depends(get_idempotency_key),
):
     try:
          confirmation = ledger.record_transfer(
               body.recipient,
               body.amount,
               body.description,
               sender_name=body.sender_name,
               idempotency_key=idempotency_key,
          )
     except StorageError as exc:
          logger.exception("Send money error")
          raise HTTPException(status_code=500, detail="Failed to send money") from exc
     return TransactionConfirmation(transaction_id=confirmation.id, message=confirmation.message)


@router.post("/request-money", response_model=RequestConfirmation, summary="Request money")
def request_money(
     body: RequestMoneyRequest,
     ledger: Ledger = Depends(get_ledger),
     idempotency_key: Optional[str] = Depends(get_idempotency_key),
):
     try:
          confirmation = ledger.record_request(
               body.from_,
               body.amount,
               body.description,
               idempotency_key=idempotency_key,
          )
     except StorageError as exc:
          logger.exception("Request money error")
          raise HTTPException(status_code=500, detail="Failed to request money") from exc
     return RequestConfirmation(request_id=confirmation.id, message=confirmation.message)


@router.post("/pay-bills", response_model=TransactionConfirmation, summary="Pay a bill")
def pay_bills(
     body: PayBillRequest,
     ledger: Ledger = Depends(get_ledger),
     idempotency_key: Optional[str] = Depends(get_idempotency_key),
):
     try:
          confirmation = ledger.record_bill_payment(
               body.bill_type,
               body.provider,
               body.amount,
               body.account_number,
               idempotency_key=idempotency_key,
          )
     except StorageError as exc:
          logger.exception("Pay bills error")
          raise HTTPException(status_code=500, detail="Failed to pay bill") from exc
     return TransactionConfirmation(transaction_id=confirmation.id, message=confirmation.message)


@router.get("/transactions", response_model=TransactionListResponse, summary="Recent activity")
def list_transactions(
     q: Optional[str] = Query(None, description="Search counterparty or description"),
     category: Optional[Category] = Query(None),
     ledger: Ledger = Depends(get_ledger),
):
     try:
          records = ledger.list_recent()
     except StorageError as exc:
          logger.exception("Get transactions error")
          raise HTTPException(status_code=500, detail="Failed to get transactions") from exc
     if q or category:
          records = search_records(records, query=q, category=category)
     return TransactionListResponse(
          transactions=[LedgerRecordResponse.from_record(r) for r in records]
     )


@router.get(
     "/transactions/{record_id}",
     response_model=TransactionResponse,
     responses={404: {"model": ErrorResponse}},
     summary="Look up one record",
)
def get_transaction(record_id: str, ledger: Ledger = Depends(get_ledger)):
     try:
          record = ledger.get_record(record_id)
     except StorageError as exc:
          logger.exception("Get transaction error")
          raise HTTPException(status_code=500, detail="Failed to get transaction") from exc
     return TransactionResponse(transaction=LedgerRecordResponse.from_record(record))
