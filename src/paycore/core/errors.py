"""
Typed failures raised inside the payment core.

Every error carries a stable ``code`` so callers (and the HTTP adapter) can
branch on the kind of failure without inspecting payment-method types.
The processor never lets these escape: it converts them into
:class:`paycore.core.result.Result` values at its boundary.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional


class PaymentError(Exception):
    """Base class for every expected failure in the core."""

    code = "payment_error"
    recoverable = False

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "detail": self.message,
            **{
                k: v if isinstance(v, (str, int, bool, type(None))) else str(v)
                for k, v in self.details.items()
            },
        }


# ----- validation -----
class ValidationError(PaymentError):
    code = "validation_error"
    recoverable = True


class InvalidAmountError(ValidationError):
    code = "invalid_amount"

    def __init__(self, amount: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"Amount must be a positive number, got {amount!r}.", amount=amount)


class LimitExceededError(ValidationError):
    code = "limit_exceeded"

    def __init__(self, kind: str, amount: Decimal, ceiling: Decimal) -> None:
        super().__init__(
            f"Amount {amount} exceeds the {kind} limit of {ceiling}.",
            kind=kind,
            amount=amount,
            ceiling=ceiling,
        )


# ----- balance -----
class InsufficientBalanceError(PaymentError):
    code = "insufficient_balance"
    recoverable = True

    def __init__(self, method_id: str, amount: Decimal, balance: Decimal) -> None:
        super().__init__(
            f"Insufficient balance on {method_id}: requested {amount}, available {balance}.",
            method_id=method_id,
            amount=amount,
            balance=balance,
        )


# ----- configuration / registration -----
class ConfigurationError(PaymentError):
    code = "configuration_error"


class UnknownKindError(ConfigurationError):
    code = "unknown_kind"

    def __init__(self, kind: str) -> None:
        super().__init__(f"Payment kind '{kind}' is not registered.", kind=kind)


class DuplicateKindError(ConfigurationError):
    code = "duplicate_kind"

    def __init__(self, kind: str) -> None:
        super().__init__(f"Payment kind '{kind}' is already registered.", kind=kind)


class CapabilityMismatchError(ConfigurationError):
    code = "capability_mismatch"

    def __init__(
        self,
        kind: str,
        operation: str,
        capability: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        reason = f"declares '{capability}' but " if capability else ""
        super().__init__(
            message or f"Kind '{kind}' {reason}its behavior does not implement '{operation}'.",
            kind=kind,
            operation=operation,
            capability=capability,
        )


class UnknownMethodError(ConfigurationError):
    code = "unknown_method"

    def __init__(self, method_id: str) -> None:
        super().__init__(f"Payment method '{method_id}' does not exist.", method_id=method_id)


class DuplicateMethodError(ConfigurationError):
    code = "duplicate_method"

    def __init__(self, method_id: str) -> None:
        super().__init__(f"Payment method '{method_id}' already exists.", method_id=method_id)


class UnknownTransactionError(ConfigurationError):
    code = "unknown_transaction"

    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            f"Transaction '{transaction_id}' does not exist.", transaction_id=transaction_id
        )


# ----- capabilities -----
class CapabilityUnsupportedError(PaymentError):
    code = "capability_unsupported"
    recoverable = True

    def __init__(self, kind: str, capability: str) -> None:
        super().__init__(
            f"Payment kind '{kind}' does not support '{capability}'.",
            kind=kind,
            capability=capability,
        )


# ----- refund integrity -----
class DuplicateRefundError(PaymentError):
    code = "duplicate_refund"

    def __init__(self, transaction_id: str) -> None:
        super().__init__(
            f"Transaction '{transaction_id}' has already been refunded.",
            transaction_id=transaction_id,
        )


class RefundExceedsAmountError(PaymentError):
    code = "refund_exceeds_amount"

    def __init__(self, transaction_id: str, amount: Decimal, refundable: Decimal) -> None:
        super().__init__(
            f"Refund of {amount} exceeds the refundable {refundable} on '{transaction_id}'.",
            transaction_id=transaction_id,
            amount=amount,
            refundable=refundable,
        )
