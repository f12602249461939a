import logging
from typing import Dict, Optional

from luco.models.payments import PaymentState, PaymentStatus

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class PaymentStatusStore:
    """
    In-memory mirror of the last payment status observed per reference.

    The provider is the source of truth; this store only caches what the
    gateway client has seen. Entries are never evicted or persisted, so one
    store lives for the lifetime of the server process. Each reference is
    written by a single purchase flow, so no locking is needed.
    """

    def __init__(self):
        self._states: Dict[str, PaymentState] = {}

    def register_pending(self, reference: str) -> PaymentState:
        return self.set(reference, PaymentState(status=PaymentStatus.PENDING))

    def set(self, reference: str, state: PaymentState) -> PaymentState:
        previous = self._states.get(reference)
        self._states[reference] = state
        if previous is None or previous.status != state.status:
            logger.info(f"Payment {reference} is now {state.status.value}")
        return state

    def get(self, reference: str) -> Optional[PaymentState]:
        return self._states.get(reference)

    def clear(self) -> None:
        self._states.clear()

    def __contains__(self, reference: str) -> bool:
        return reference in self._states

    def __len__(self) -> int:
        return len(self._states)
