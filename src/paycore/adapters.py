"""
Caller-side implementations of the Notifier and PersistenceSink ports.

Nothing in the payment core imports this module; the HTTP app wires these
in after the processor returns a result.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from paycore.models.transaction import Transaction

logger = logging.getLogger(__name__)


class LoggingNotifier:
    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def notify(self, event: str, payload: Dict[str, Any]) -> None:
        self.log.info("event=%s payload=%s", event, payload)


class InMemorySink:
    """Append-only transaction log kept in memory."""

    def __init__(self):
        self._records: List[Transaction] = []
        self._lock = threading.Lock()

    def append(self, transaction: Transaction) -> None:
        with self._lock:
            self._records.append(transaction)

    def records(self) -> List[Transaction]:
        with self._lock:
            return list(self._records)
