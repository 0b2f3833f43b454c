"""
Capability registry: the only place a payment kind is resolved.

Adding a kind means one ``register`` call; nothing else in the core
branches on the kind string.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List

from paycore.core.errors import CapabilityMismatchError, DuplicateKindError, UnknownKindError
from paycore.models.payment_method import Capability, CapabilityDescriptor

logger = logging.getLogger(__name__)

# operations every behavior must expose
_BASE_OPERATIONS = ("validate", "process_payment")

# operation a behavior must expose for each optional capability
_REQUIRED_OPERATIONS = {
    Capability.FEE_BEARING: "calculate_fees",
    Capability.REFUNDABLE: "refund",
}


@dataclass(frozen=True)
class RegistryEntry:
    kind: str
    descriptor: CapabilityDescriptor
    behavior: Any

    def supports(self, capability: Capability) -> bool:
        return self.descriptor.supports(capability)


class CapabilityRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, RegistryEntry] = {}
        self._lock = threading.Lock()

    def register(self, kind: str, descriptor: CapabilityDescriptor, behavior: Any) -> RegistryEntry:
        for operation in _BASE_OPERATIONS:
            if not callable(getattr(behavior, operation, None)):
                raise CapabilityMismatchError(kind, operation)
        for capability, operation in _REQUIRED_OPERATIONS.items():
            if descriptor.supports(capability) and not callable(getattr(behavior, operation, None)):
                raise CapabilityMismatchError(kind, operation, capability.value)

        entry = RegistryEntry(kind=kind, descriptor=descriptor, behavior=behavior)
        with self._lock:
            if kind in self._entries:
                raise DuplicateKindError(kind)
            self._entries[kind] = entry
        logger.info(
            "Registered payment kind %s (%s)",
            kind,
            ", ".join(sorted(c.value for c in descriptor.capabilities)) or "no capabilities",
        )
        return entry

    def lookup(self, kind: str) -> RegistryEntry:
        entry = self._entries.get(kind)
        if entry is None:
            raise UnknownKindError(kind)
        return entry

    def kinds(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, kind: object) -> bool:
        return kind in self._entries

    def __len__(self) -> int:
        return len(self._entries)
