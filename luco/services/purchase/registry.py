import logging
import time
import uuid
from typing import Callable, Dict, Optional

from config import PAYMENT_POLL_INTERVAL_SECONDS, PURCHASE_FLOW_TTL_SECONDS
from luco.models.vouchers import Voucher
from luco.services.payments.gateway import PaymentGatewayClient
from luco.services.purchase.flow import PurchaseFlowController
from luco.services.vouchers import VoucherManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class PurchaseFlowRegistry:
    """
    Keeps the purchase flows started through the HTTP API, keyed by flow ID.

    A flow nobody has looked at for `flow_ttl` seconds is discarded the next
    time a flow is started, unless it is still polling a payment: those are
    kept until the payment settles so the purchase is always recorded.
    """

    def __init__(
        self,
        gateway: PaymentGatewayClient,
        voucher_manager: VoucherManager,
        poll_interval: float = PAYMENT_POLL_INTERVAL_SECONDS,
        flow_ttl: float = PURCHASE_FLOW_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway = gateway
        self.voucher_manager = voucher_manager
        self.poll_interval = poll_interval
        self.flow_ttl = flow_ttl
        self.clock = clock
        self._flows: Dict[str, PurchaseFlowController] = {}
        self._last_seen: Dict[str, float] = {}

    def start(self, voucher: Voucher) -> str:
        self.evict_stale()

        flow_id = str(uuid.uuid4())
        self._flows[flow_id] = PurchaseFlowController(
            voucher=voucher,
            gateway=self.gateway,
            voucher_manager=self.voucher_manager,
            poll_interval=self.poll_interval,
        )
        self._last_seen[flow_id] = self.clock()
        logger.info(f"Started purchase flow {flow_id} for voucher {voucher.id}")
        return flow_id

    def get(self, flow_id: str) -> Optional[PurchaseFlowController]:
        flow = self._flows.get(flow_id)
        if flow is not None:
            self._last_seen[flow_id] = self.clock()
        return flow

    def discard(self, flow_id: str) -> bool:
        flow = self._flows.pop(flow_id, None)
        self._last_seen.pop(flow_id, None)
        if flow is None:
            return False
        flow.close()
        logger.info(f"Discarded purchase flow {flow_id}")
        return True

    def evict_stale(self) -> int:
        """Discard idle flows; returns how many were removed."""
        cutoff = self.clock() - self.flow_ttl
        stale = [
            flow_id
            for flow_id, last_seen in self._last_seen.items()
            if last_seen < cutoff and not self._flows[flow_id].is_polling
        ]
        for flow_id in stale:
            self.discard(flow_id)

        if stale:
            logger.info(f"Evicted {len(stale)} idle purchase flows")
        return len(stale)

    def close_all(self) -> None:
        for flow_id in list(self._flows):
            self.discard(flow_id)

    def __len__(self) -> int:
        return len(self._flows)
