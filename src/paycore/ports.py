"""
Interfaces of the collaborators the core talks to but never implements.

Notifier and PersistenceSink are called by whoever drives the processor,
after a result comes back. RateProvider is consumed by rate-converted kinds.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Protocol

from paycore.models.transaction import Transaction


class Notifier(Protocol):
    def notify(self, event: str, payload: Dict[str, Any]) -> None:  # pragma: no cover - interface
        ...


class PersistenceSink(Protocol):
    def append(self, transaction: Transaction) -> None:  # pragma: no cover - interface
        ...


class RateProvider(Protocol):
    def current_rate(self) -> Decimal:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class StaticRate:
    """A rate fixed at construction time; units of target per unit of source."""

    rate: Decimal
    source: str = "INR"
    target: str = "BTC"
    as_of: str = "static"

    def __post_init__(self) -> None:
        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, "rate", Decimal(str(self.rate)))
        if not self.rate.is_finite() or self.rate <= 0:
            raise ValueError(f"Conversion rate must be a positive number, got {self.rate}.")

    def current_rate(self) -> Decimal:
        return self.rate
