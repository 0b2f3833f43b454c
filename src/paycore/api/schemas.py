from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class MethodRequestSchema(BaseModel):
    kind: str
    method_id: Optional[str] = None
    balance: Optional[Decimal] = None


class MethodSchema(BaseModel):
    method_id: str
    kind: str
    capabilities: List[str]
    created_at: str
    balance: Optional[str] = None


class KindSchema(BaseModel):
    kind: str
    capabilities: List[str]
    max_amount: Optional[str] = None
    currency: str
    description: str = ""


class PaymentRequestSchema(BaseModel):
    method_id: str
    amount: Decimal


class RefundRequestSchema(BaseModel):
    amount: Decimal


class TransactionSchema(BaseModel):
    transaction_id: str
    method_id: str
    kind: str
    amount: str
    status: str
    fees_charged: str
    refunded_amount: str
    created_at: str
    refunded_at: Optional[str] = None
    failure_reason: Optional[str] = None
    metadata: Dict[str, Any] = {}


class FeeResponseSchema(BaseModel):
    method_id: str
    amount: str
    fees: str


class ErrorResponseSchema(BaseModel):
    error: str
    detail: str
