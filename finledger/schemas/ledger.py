"""
Pydantic schemas for the money-movement endpoints.

Request fields are optional at the schema level on purpose: the ledger service
owns validation and answers missing or empty values with ValidationError, so
the HTTP layer and direct callers get the same rules and messages.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from finledger.models import Category, Direction, LedgerRecord, RecordKind, RecordStatus


class CamelModel(BaseModel):
     """Base for JSON bodies using camelCase keys."""
     model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendMoneyRequest(CamelModel):
     """Request body for POST /send-money."""
     recipient: Optional[str] = Field(None, description="Who receives the money")
     amount: Optional[Decimal] = Field(None, description="Amount to send, must be positive")
     description: Optional[str] = Field(None, max_length=500)
     sender_name: Optional[str] = Field(None, max_length=255)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "recipient": "Chioma Okafor",
                    "amount": 25000,
                    "description": "Dinner split",
                    "senderName": "Adebayo Oladele",
               }
          }
     )


class RequestMoneyRequest(CamelModel):
     """Request body for POST /request-money."""
     from_: Optional[str] = Field(None, alias="from", description="Who is asked to pay")
     amount: Optional[Decimal] = None
     description: Optional[str] = Field(None, max_length=500)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {"from": "Tunde Bakare", "amount": 15000, "description": "Concert ticket"}
          }
     )


class PayBillRequest(CamelModel):
     """Request body for POST /pay-bills."""
     bill_type: Optional[str] = Field(None, description="electricity, telecoms, cable_tv, internet, water")
     provider: Optional[str] = None
     amount: Optional[Decimal] = None
     account_number: Optional[str] = Field(None, max_length=64)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "billType": "electricity",
                    "provider": "EKEDC",
                    "amount": 18500,
                    "accountNumber": "0123456789",
               }
          }
     )


class TransactionConfirmation(CamelModel):
     """Response for POST /send-money and POST /pay-bills."""
     success: bool = True
     transaction_id: str
     message: str


class RequestConfirmation(CamelModel):
     """Response for POST /request-money."""
     success: bool = True
     request_id: str
     message: str


class LedgerRecordResponse(CamelModel):
     id: str
     kind: RecordKind
     amount: Decimal
     direction: Direction
     counterparty: str
     category: Category
     status: RecordStatus
     created_at: datetime
     metadata: Dict[str, Any] = Field(default_factory=dict)

     @field_serializer("amount")
     def _amount_as_number(self, amount: Decimal) -> float:
          return float(amount)

     @classmethod
     def from_record(cls, record: LedgerRecord) -> "LedgerRecordResponse":
          return cls.model_validate(record.to_dict())


class TransactionListResponse(BaseModel):
     """Response for GET /transactions (newest first)."""
     transactions: List[LedgerRecordResponse]


class TransactionResponse(BaseModel):
     transaction: LedgerRecordResponse


class ErrorResponse(BaseModel):
     error: str
