from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from paycore.utils.helpers import generate_unique_id, money_context, utc_now


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class Transaction:
    """
    Record of one payment attempt.

    Instances never change; a refund produces a new record through
    :meth:`refunded` and the processor swaps it into its store.
    """

    method_id: str
    kind: str
    amount: Decimal
    status: TransactionStatus = TransactionStatus.COMPLETED
    fees_charged: Decimal = Decimal("0.00")
    refunded_amount: Decimal = Decimal("0.00")
    transaction_id: str = field(default_factory=generate_unique_id)
    created_at: datetime = field(default_factory=utc_now)
    refunded_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_refunded(self) -> bool:
        return self.status is TransactionStatus.REFUNDED

    @property
    def refundable_amount(self) -> Decimal:
        with money_context():
            return self.amount - self.refunded_amount

    def refunded(self, amount: Decimal) -> "Transaction":
        with money_context():
            total = self.refunded_amount + amount
        return replace(
            self,
            status=TransactionStatus.REFUNDED,
            refunded_amount=total,
            refunded_at=utc_now(),
        )

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "method_id": self.method_id,
            "kind": self.kind,
            "amount": str(self.amount),
            "status": self.status.value,
            "fees_charged": str(self.fees_charged),
            "refunded_amount": str(self.refunded_amount),
            "created_at": self.created_at.isoformat(),
            "refunded_at": self.refunded_at.isoformat() if self.refunded_at else None,
            "failure_reason": self.failure_reason,
            "metadata": dict(self.metadata),
        }
