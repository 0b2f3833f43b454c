"""
Payment processor for the payment core.

The processor is the only entry point callers need. It never looks at
which concrete kind a method is: every optional operation is gated on the
kind's CapabilityDescriptor, so a newly registered kind goes through
exactly the same code path as the built-in ones.

Core responsibilities:
- Resolve a method and its registry entry
- Validate, execute and record payments
- Refund completed payments atomically with their ledger credit
- Answer fee queries (0 for kinds that carry no fees)

Every public operation returns a Result. Typed PaymentErrors raised by the
registry, the ledger or a behavior are converted at this boundary;
persistence and notification are left to the caller.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from paycore.config import Config
from paycore.core.errors import (
    CapabilityMismatchError,
    CapabilityUnsupportedError,
    DuplicateMethodError,
    DuplicateRefundError,
    InvalidAmountError,
    PaymentError,
    RefundExceedsAmountError,
    UnknownMethodError,
    UnknownTransactionError,
)
from paycore.core.ledger import EntryType, Ledger, LedgerInstruction
from paycore.core.registry import CapabilityRegistry, RegistryEntry
from paycore.core.result import Result
from paycore.models.payment_method import Capability, CapabilityDescriptor, PaymentMethod
from paycore.models.transaction import Transaction, TransactionStatus
from paycore.utils.helpers import log_transaction, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class PaymentProcessorConfig:
    """
    Policy flags for the processor.

    record_failed_attempts: keep a FAILED transaction for every payment that
    was rejected after its method was resolved (audit trail). The caller
    still gets the typed error back.
    """
    record_failed_attempts: bool = Config.RECORD_FAILED_ATTEMPTS


class PaymentProcessor:
    """
    Orchestrates payments across every registered payment kind.

    Built from an explicit registry and ledger; there is no shared
    module-level instance.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        ledger: Optional[Ledger] = None,
        config: Optional[PaymentProcessorConfig] = None,
    ) -> None:
        self.registry = registry
        self.ledger: Ledger = ledger if ledger is not None else Ledger()
        self.config: PaymentProcessorConfig = config or PaymentProcessorConfig()

        self._methods: Dict[str, PaymentMethod] = {}
        self._methods_lock = threading.Lock()

        self._transactions: Dict[str, Transaction] = {}
        self._refund_locks: Dict[str, threading.Lock] = {}
        self._store_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register_method(self, kind: str, descriptor: CapabilityDescriptor, behavior: Any) -> Result[None]:
        """Register a new payment kind with its descriptor and behavior."""
        try:
            self.registry.register(kind, descriptor, behavior)
        except PaymentError as exc:
            return self._fail("register_method", exc)
        return Result.success(None)

    def add_method(
        self,
        kind: str,
        *,
        method_id: Optional[str] = None,
        balance: Any = None,
    ) -> Result[PaymentMethod]:
        """
        Create a payment method of a registered kind.

        Balance-tracked kinds get a ledger account opened with ``balance``
        (0 when omitted). Passing a balance for any other kind is a
        CapabilityUnsupportedError.
        """
        try:
            entry = self.registry.lookup(kind)
            tracked = entry.supports(Capability.BALANCE_TRACKED)
            if balance is not None and not tracked:
                raise CapabilityUnsupportedError(kind, Capability.BALANCE_TRACKED.value)

            fields: Dict[str, Any] = {"kind": kind, "capabilities": entry.descriptor.capabilities}
            if method_id is not None:
                fields["method_id"] = method_id
            method = PaymentMethod(**fields)

            with self._methods_lock:
                if method.method_id in self._methods:
                    raise DuplicateMethodError(method.method_id)
                if tracked:
                    self.ledger.open_account(method.method_id, ZERO if balance is None else balance)
                self._methods[method.method_id] = method
        except PaymentError as exc:
            return self._fail("add_method", exc)

        logger.info("Added %s payment method %s", kind, method.method_id)
        return Result.success(method)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def process(self, method_id: str, amount: Any) -> Result[Transaction]:
        """
        Validate and execute a payment of ``amount`` on ``method_id``.

        Returns the COMPLETED transaction, or one of InvalidAmountError,
        LimitExceededError, InsufficientBalanceError, UnknownMethodError.
        """
        try:
            method, entry = self._resolve(method_id)
        except PaymentError as exc:
            return self._fail("process", exc)

        try:
            value = entry.behavior.validate(amount, entry.descriptor, entry.kind)
            outcome = entry.behavior.process_payment(method, value)
            fees = self._fees_for(entry, value)
            self._check_instruction(entry, method.method_id, value, outcome.instruction, EntryType.DEBIT)
            if outcome.instruction is not None:
                self.ledger.apply(outcome.instruction)
        except PaymentError as exc:
            self._record_failure(method, amount, exc)
            return self._fail("process", exc)

        tx = Transaction(
            method_id=method.method_id,
            kind=method.kind,
            amount=value,
            fees_charged=fees,
            metadata=dict(outcome.metadata),
        )
        self._store(tx)
        log_transaction(tx)
        return Result.success(tx)

    def refund(self, transaction_id: str, amount: Any) -> Result[Transaction]:
        """
        Refund ``amount`` of a completed transaction.

        Non-refundable kinds always answer CapabilityUnsupportedError. For
        the rest, checking the status, crediting the ledger and marking the
        transaction REFUNDED happen under the transaction's own lock.
        """
        try:
            tx = self._transaction(transaction_id)
            _, entry = self._resolve(tx.method_id)
            if not entry.supports(Capability.REFUNDABLE):
                raise CapabilityUnsupportedError(entry.kind, Capability.REFUNDABLE.value)

            with self._refund_locks[transaction_id]:
                tx = self._transactions[transaction_id]
                if tx.is_refunded:
                    raise DuplicateRefundError(transaction_id)
                value = to_money(amount)
                if value <= 0:
                    raise InvalidAmountError(amount)
                refundable = tx.refundable_amount if tx.status is TransactionStatus.COMPLETED else ZERO
                if value > refundable:
                    raise RefundExceedsAmountError(transaction_id, value, refundable)

                instruction = entry.behavior.refund(tx, value)
                self._check_instruction(entry, tx.method_id, value, instruction, EntryType.CREDIT)
                if instruction is not None:
                    self.ledger.apply(instruction)
                refunded = tx.refunded(value)
                with self._store_lock:
                    self._transactions[transaction_id] = refunded
        except PaymentError as exc:
            return self._fail("refund", exc)

        log_transaction(refunded)
        return Result.success(refunded)

    def get_fees(self, method_id: str, amount: Any) -> Result[Decimal]:
        """Fees ``method_id`` would charge on ``amount``; 0 for kinds without fees."""
        try:
            _, entry = self._resolve(method_id)
            if not entry.supports(Capability.FEE_BEARING):
                return Result.success(ZERO)
            value = to_money(amount)
            if value <= 0:
                raise InvalidAmountError(amount)
            fees = entry.behavior.calculate_fees(value)
        except PaymentError as exc:
            return self._fail("get_fees", exc)
        return Result.success(fees)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------
    def get_method(self, method_id: str) -> Result[PaymentMethod]:
        method = self._methods.get(method_id)
        if method is None:
            return Result.failure(UnknownMethodError(method_id))
        return Result.success(method)

    def describe_kind(self, kind: str) -> Result[CapabilityDescriptor]:
        try:
            return Result.success(self.registry.lookup(kind).descriptor)
        except PaymentError as exc:
            return Result.failure(exc)

    def balance(self, method_id: str) -> Result[Optional[Decimal]]:
        """Current balance, or None for methods that do not track one."""
        method = self._methods.get(method_id)
        if method is None:
            return Result.failure(UnknownMethodError(method_id))
        if not method.supports(Capability.BALANCE_TRACKED):
            return Result.success(None)
        return Result.success(self.ledger.balance(method_id))

    def get_transaction(self, transaction_id: str) -> Result[Transaction]:
        try:
            return Result.success(self._transaction(transaction_id))
        except PaymentError as exc:
            return Result.failure(exc)

    def list_transactions(self, method_id: Optional[str] = None) -> List[Transaction]:
        with self._store_lock:
            transactions = list(self._transactions.values())
        if method_id is not None:
            transactions = [tx for tx in transactions if tx.method_id == method_id]
        return transactions

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _resolve(self, method_id: str) -> Tuple[PaymentMethod, RegistryEntry]:
        method = self._methods.get(method_id)
        if method is None:
            raise UnknownMethodError(method_id)
        return method, self.registry.lookup(method.kind)

    def _transaction(self, transaction_id: str) -> Transaction:
        tx = self._transactions.get(transaction_id)
        if tx is None:
            raise UnknownTransactionError(transaction_id)
        return tx

    @staticmethod
    def _fees_for(entry: RegistryEntry, amount: Decimal) -> Decimal:
        if not entry.supports(Capability.FEE_BEARING):
            return ZERO
        return entry.behavior.calculate_fees(amount)

    @staticmethod
    def _check_instruction(
        entry: RegistryEntry,
        method_id: str,
        amount: Decimal,
        instruction: Optional[LedgerInstruction],
        expected: EntryType,
    ) -> None:
        """
        Balance-tracked kinds must move exactly ``amount`` on their own
        account; every other kind must leave the ledger alone.
        """
        tracked = entry.supports(Capability.BALANCE_TRACKED)
        if instruction is None:
            if tracked:
                raise CapabilityMismatchError(
                    entry.kind, f"{expected.value} instruction", Capability.BALANCE_TRACKED.value
                )
            return
        if not tracked:
            raise CapabilityMismatchError(
                entry.kind,
                "ledger instruction",
                message=(
                    f"Kind '{entry.kind}' does not declare 'balance_tracked' "
                    "but its behavior emitted a ledger instruction."
                ),
            )
        if (
            instruction.entry_type is not expected
            or instruction.method_id != method_id
            or instruction.amount != amount
        ):
            raise CapabilityMismatchError(
                entry.kind,
                f"{expected.value} instruction",
                message=(
                    f"Kind '{entry.kind}' emitted {instruction.entry_type.value} of "
                    f"{instruction.amount} on '{instruction.method_id}'; expected "
                    f"{expected.value} of {amount} on '{method_id}'."
                ),
            )

    def _store(self, tx: Transaction) -> None:
        with self._store_lock:
            self._refund_locks[tx.transaction_id] = threading.Lock()
            self._transactions[tx.transaction_id] = tx

    def _record_failure(self, method: PaymentMethod, amount: Any, exc: PaymentError) -> None:
        if not self.config.record_failed_attempts:
            return
        try:
            value = to_money(amount)
        except InvalidAmountError:
            return
        if value <= 0:
            return
        self._store(
            Transaction(
                method_id=method.method_id,
                kind=method.kind,
                amount=value,
                status=TransactionStatus.FAILED,
                failure_reason=exc.code,
            )
        )

    @staticmethod
    def _fail(operation: str, exc: PaymentError) -> Result:
        logger.warning("%s failed (%s): %s", operation, exc.code, exc.message)
        return Result.failure(exc)
