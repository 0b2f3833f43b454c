"""
Authoritative balance state for balance-tracked payment methods.

Each account has its own lock, so two debits against the same gift card
are serialized while debits on different methods never wait on each other.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, Tuple

from paycore.core.errors import (
    DuplicateMethodError,
    InsufficientBalanceError,
    InvalidAmountError,
    UnknownMethodError,
)
from paycore.utils.helpers import money_context, to_money

logger = logging.getLogger(__name__)


class EntryType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class LedgerInstruction:
    """A balance change a payment behavior asks the ledger to perform."""

    entry_type: EntryType
    method_id: str
    amount: Decimal

    @classmethod
    def debit(cls, method_id: str, amount: Decimal) -> "LedgerInstruction":
        return cls(EntryType.DEBIT, method_id, amount)

    @classmethod
    def credit(cls, method_id: str, amount: Decimal) -> "LedgerInstruction":
        return cls(EntryType.CREDIT, method_id, amount)


class _Account:
    __slots__ = ("balance", "lock")

    def __init__(self, balance: Decimal) -> None:
        self.balance = balance
        self.lock = threading.Lock()


class Ledger:
    def __init__(self) -> None:
        self._accounts: Dict[str, _Account] = {}
        # guards the account map only, never held while a balance changes
        self._accounts_lock = threading.Lock()

    def open_account(self, method_id: str, balance=Decimal("0")) -> Decimal:
        opening = to_money(balance)
        if opening < 0:
            raise InvalidAmountError(balance, "Opening balance cannot be negative.")
        with self._accounts_lock:
            if method_id in self._accounts:
                raise DuplicateMethodError(method_id)
            self._accounts[method_id] = _Account(opening)
        logger.debug("Opened ledger account %s with %s", method_id, opening)
        return opening

    def has_account(self, method_id: str) -> bool:
        return method_id in self._accounts

    def balance(self, method_id: str) -> Decimal:
        account = self._account(method_id)
        with account.lock:
            return account.balance

    def debit(self, method_id: str, amount: Decimal) -> Decimal:
        value = self._positive(amount)
        account = self._account(method_id)
        with account.lock, money_context():
            if value > account.balance:
                raise InsufficientBalanceError(method_id, value, account.balance)
            account.balance -= value
            new_balance = account.balance
        logger.debug("Debited %s from %s, balance %s", value, method_id, new_balance)
        return new_balance

    def credit(self, method_id: str, amount: Decimal) -> Decimal:
        value = self._positive(amount)
        account = self._account(method_id)
        with account.lock, money_context():
            account.balance += value
            new_balance = account.balance
        logger.debug("Credited %s to %s, balance %s", value, method_id, new_balance)
        return new_balance

    def apply(self, instruction: LedgerInstruction) -> Decimal:
        if instruction.entry_type is EntryType.DEBIT:
            return self.debit(instruction.method_id, instruction.amount)
        return self.credit(instruction.method_id, instruction.amount)

    def snapshot(self) -> Iterator[Tuple[str, Decimal]]:
        with self._accounts_lock:
            ids = list(self._accounts)
        for method_id in ids:
            yield method_id, self.balance(method_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _account(self, method_id: str) -> _Account:
        account = self._accounts.get(method_id)
        if account is None:
            raise UnknownMethodError(method_id)
        return account

    @staticmethod
    def _positive(amount) -> Decimal:
        value = to_money(amount)
        if value <= 0:
            raise InvalidAmountError(amount)
        return value
