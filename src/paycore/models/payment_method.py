# src/paycore/models/payment_method.py
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional

from paycore.utils.helpers import generate_unique_id, utc_now


class Capability(str, Enum):
    FEE_BEARING = "fee_bearing"
    REFUNDABLE = "refundable"
    BALANCE_TRACKED = "balance_tracked"


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Static, per-kind declaration of optional operations and limits."""

    capabilities: FrozenSet[Capability] = frozenset()
    max_amount: Optional[Decimal] = None  # None -> no ceiling
    currency: str = "INR"
    description: str = ""

    @classmethod
    def of(cls, *capabilities: Capability, **kwargs) -> "CapabilityDescriptor":
        return cls(capabilities=frozenset(capabilities), **kwargs)

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def fee_bearing(self) -> bool:
        return self.supports(Capability.FEE_BEARING)

    @property
    def refundable(self) -> bool:
        return self.supports(Capability.REFUNDABLE)

    @property
    def balance_tracked(self) -> bool:
        return self.supports(Capability.BALANCE_TRACKED)

    def to_dict(self) -> dict:
        return {
            "capabilities": sorted(c.value for c in self.capabilities),
            "max_amount": None if self.max_amount is None else str(self.max_amount),
            "currency": self.currency,
            "description": self.description,
        }


@dataclass(frozen=True)
class PaymentMethod:
    kind: str
    capabilities: FrozenSet[Capability] = frozenset()
    method_id: str = field(default_factory=generate_unique_id)
    created_at: datetime = field(default_factory=utc_now)

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def to_dict(self, balance: Optional[Decimal] = None) -> dict:
        data = {
            "method_id": self.method_id,
            "kind": self.kind,
            "capabilities": sorted(c.value for c in self.capabilities),
            "created_at": self.created_at.isoformat(),
        }
        if Capability.BALANCE_TRACKED in self.capabilities:
            data["balance"] = None if balance is None else str(balance)
        return data
