# src/paycore/services/catalog.py
"""
Payment method behaviors.

Every behavior shares one contract:

- ``validate`` accepts any positive amount up to the kind's configured
  ceiling and nothing else. It lives on the base class and is not
  overridden, so no kind can tighten the precondition.
- ``process_payment`` never fails for kinds without a balance. Balance
  tracked kinds return a debit instruction; the ledger is what refuses an
  overdraft.
- ``calculate_fees`` exists only on fee-bearing kinds, ``refund`` only on
  refundable ones. The processor checks the descriptor before calling either.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional, Type

from paycore.config import Config
from paycore.core.errors import DuplicateRefundError, InvalidAmountError, LimitExceededError
from paycore.core.ledger import LedgerInstruction
from paycore.core.registry import CapabilityRegistry
from paycore.models.payment_method import Capability, CapabilityDescriptor, PaymentMethod
from paycore.models.transaction import Transaction
from paycore.ports import RateProvider, StaticRate
from paycore.utils.helpers import SATOSHI, money_context, percent_of, to_money

CREDIT_CARD = "credit_card"
CASH = "cash"
UPI = "upi"
GIFT_CARD = "gift_card"
BITCOIN = "bitcoin"


@dataclass(frozen=True)
class PaymentOutcome:
    instruction: Optional[LedgerInstruction] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class PaymentBehavior(ABC):
    CAPABILITIES: FrozenSet[Capability] = frozenset()

    def validate(self, amount, descriptor: CapabilityDescriptor, kind: str = "") -> Decimal:
        """Return ``amount`` as money, or raise InvalidAmountError / LimitExceededError."""
        value = to_money(amount)
        if value <= 0:
            raise InvalidAmountError(amount)
        if descriptor.max_amount is not None and value > descriptor.max_amount:
            raise LimitExceededError(kind or "payment", value, descriptor.max_amount)
        return value

    @abstractmethod
    def process_payment(self, method: PaymentMethod, amount: Decimal) -> PaymentOutcome:
        ...


class FeeBearing(ABC):
    @abstractmethod
    def calculate_fees(self, amount: Decimal) -> Decimal:
        ...


class PercentageFee(FeeBearing):
    def __init__(self, fee_percent: Decimal) -> None:
        if fee_percent < 0:
            raise ValueError("fee_percent cannot be negative")
        self.fee_percent = fee_percent

    def calculate_fees(self, amount: Decimal) -> Decimal:
        return percent_of(amount, self.fee_percent)


class Refundable:
    def refund(self, transaction: Transaction, amount: Decimal) -> Optional[LedgerInstruction]:
        if transaction.is_refunded:
            raise DuplicateRefundError(transaction.transaction_id)
        return self.refund_instruction(transaction, amount)

    def refund_instruction(self, transaction: Transaction, amount: Decimal) -> Optional[LedgerInstruction]:
        # money goes back through the external rail; nothing to credit here
        return None


# ---------------------------------------------------------------------------
# Concrete kinds
# ---------------------------------------------------------------------------
class CreditCardPayment(PercentageFee, Refundable, PaymentBehavior):
    CAPABILITIES = frozenset({Capability.FEE_BEARING, Capability.REFUNDABLE})

    def __init__(self, fee_percent: Decimal = Config.CARD_FEE_PERCENT) -> None:
        super().__init__(fee_percent)

    def process_payment(self, method: PaymentMethod, amount: Decimal) -> PaymentOutcome:
        return PaymentOutcome()


class CashPayment(PaymentBehavior):
    CAPABILITIES: FrozenSet[Capability] = frozenset()

    def process_payment(self, method: PaymentMethod, amount: Decimal) -> PaymentOutcome:
        return PaymentOutcome()


class UpiPayment(FeeBearing, PaymentBehavior):
    """UPI is free up to ``fee_free_limit``; above it the whole amount pays ``fee_percent``."""

    CAPABILITIES = frozenset({Capability.FEE_BEARING})

    def __init__(
        self,
        fee_percent: Decimal = Config.UPI_FEE_PERCENT,
        fee_free_limit: Decimal = Config.UPI_FEE_FREE_LIMIT,
    ) -> None:
        self.fee_percent = fee_percent
        self.fee_free_limit = fee_free_limit

    def calculate_fees(self, amount: Decimal) -> Decimal:
        if amount <= self.fee_free_limit:
            return Decimal("0.00")
        return percent_of(amount, self.fee_percent)

    def process_payment(self, method: PaymentMethod, amount: Decimal) -> PaymentOutcome:
        return PaymentOutcome()


class GiftCardPayment(Refundable, PaymentBehavior):
    CAPABILITIES = frozenset({Capability.REFUNDABLE, Capability.BALANCE_TRACKED})

    def process_payment(self, method: PaymentMethod, amount: Decimal) -> PaymentOutcome:
        return PaymentOutcome(instruction=LedgerInstruction.debit(method.method_id, amount))

    def refund_instruction(self, transaction: Transaction, amount: Decimal) -> Optional[LedgerInstruction]:
        return LedgerInstruction.credit(transaction.method_id, amount)


class BitcoinPayment(PercentageFee, PaymentBehavior):
    """Charged in fiat, settled in BTC at the rate the provider currently quotes."""

    CAPABILITIES = frozenset({Capability.FEE_BEARING})

    def __init__(
        self,
        rate_provider: RateProvider,
        fee_percent: Decimal = Config.BITCOIN_FEE_PERCENT,
    ) -> None:
        super().__init__(fee_percent)
        self.rate_provider = rate_provider

    def process_payment(self, method: PaymentMethod, amount: Decimal) -> PaymentOutcome:
        rate = self.rate_provider.current_rate()
        with money_context():
            btc_amount = (amount * rate).quantize(SATOSHI)
        return PaymentOutcome(metadata={"btc_amount": f"{btc_amount:f}", "btc_rate": f"{rate:f}"})


def descriptor_for(
    behavior_cls: Type[PaymentBehavior],
    max_amount=None,
    currency: str = Config.DEFAULT_CURRENCY,
    description: str = "",
) -> CapabilityDescriptor:
    return CapabilityDescriptor(
        capabilities=behavior_cls.CAPABILITIES,
        max_amount=None if max_amount is None else to_money(max_amount),
        currency=currency,
        description=description,
    )


def default_registry(config=Config, rate_provider: Optional[RateProvider] = None) -> CapabilityRegistry:
    """
    Registry with the built-in kinds, tuned from ``config``.

    The bitcoin kind uses ``rate_provider`` when given, otherwise a static
    snapshot of ``config.BTC_RATE``.
    """
    rates = rate_provider or StaticRate(config.BTC_RATE, source=config.DEFAULT_CURRENCY)
    currency = config.DEFAULT_CURRENCY

    registry = CapabilityRegistry()
    registry.register(
        CREDIT_CARD,
        descriptor_for(CreditCardPayment, config.CARD_MAX_AMOUNT, currency, "Credit card"),
        CreditCardPayment(config.CARD_FEE_PERCENT),
    )
    registry.register(
        CASH,
        descriptor_for(CashPayment, config.CASH_MAX_AMOUNT, currency, "Cash"),
        CashPayment(),
    )
    registry.register(
        UPI,
        descriptor_for(UpiPayment, config.UPI_MAX_AMOUNT, currency, "Unified Payments Interface"),
        UpiPayment(config.UPI_FEE_PERCENT, config.UPI_FEE_FREE_LIMIT),
    )
    registry.register(
        GIFT_CARD,
        descriptor_for(GiftCardPayment, config.GIFT_CARD_MAX_AMOUNT, currency, "Stored-value gift card"),
        GiftCardPayment(),
    )
    registry.register(
        BITCOIN,
        descriptor_for(BitcoinPayment, config.BITCOIN_MAX_AMOUNT, currency, "Bitcoin"),
        BitcoinPayment(rates, config.BITCOIN_FEE_PERCENT),
    )
    return registry
