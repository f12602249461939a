"""
Purchase Flow

Drives a single voucher purchase through the mobile money provider:

    enter-phone -> confirm-identity -> verify-payment -> receipt
                          |                  |
                          +----> failed <----+
                                   |
                                   +--> enter-phone (retry)

The payer confirms their identity and the price explicitly before being
charged. Once a payment has been requested the flow polls the provider every
`poll_interval` seconds until the payment succeeds or fails. The polling task
is owned by the flow and is cancelled by the transition that ends it.
"""

import asyncio
import logging
from enum import Enum
from traceback import format_exc
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from config import PAYMENT_POLL_INTERVAL_SECONDS
from luco.models.payments import PaymentStatus
from luco.models.shared import VoucherStatus
from luco.models.vouchers import Voucher
from luco.services.payments.gateway import PaymentGatewayClient
from luco.services.payments.phone import normalize_phone, validate_phone
from luco.services.vouchers import VoucherManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

VOUCHER_UNAVAILABLE_MESSAGE = "This voucher is no longer available."
PAYMENT_NOT_SUCCESSFUL_MESSAGE = "The transaction was not successful."


class PurchaseStep(str, Enum):
    ENTER_PHONE = "enter-phone"
    CONFIRM_IDENTITY = "confirm-identity"
    VERIFY_PAYMENT = "verify-payment"
    RECEIPT = "receipt"
    FAILED = "failed"


ALLOWED_TRANSITIONS = {
    # enter-phone -> receipt only for free promotional vouchers
    PurchaseStep.ENTER_PHONE: {PurchaseStep.CONFIRM_IDENTITY, PurchaseStep.RECEIPT},
    PurchaseStep.CONFIRM_IDENTITY: {PurchaseStep.VERIFY_PAYMENT, PurchaseStep.FAILED},
    PurchaseStep.VERIFY_PAYMENT: {PurchaseStep.RECEIPT, PurchaseStep.FAILED},
    PurchaseStep.FAILED: {PurchaseStep.ENTER_PHONE},
    PurchaseStep.RECEIPT: set(),
}


class InvalidTransition(Exception):
    pass


class PurchaseFlowState(BaseModel):
    """Serialisable view of a purchase flow."""

    voucher_id: str
    voucher_title: str
    price: int
    step: PurchaseStep
    phone_entry_disabled: bool
    phone: Optional[str] = None
    identity_name: Optional[str] = None
    reference: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    error: Optional[str] = None
    claimed: bool = False
    purchase_recorded: bool = False
    code: Optional[str] = None


class PollingTimer:
    """
    Repeating timer that awaits `callback` every `interval` seconds.

    `cancel()` may be called from inside the callback: the running tick is
    allowed to finish and no further tick is scheduled.
    """

    def __init__(self, interval: float, callback: Callable[[], Awaitable[None]]):
        self.interval = interval
        self.callback = callback
        self._task: Optional[asyncio.Task] = None
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self._active:
            await asyncio.sleep(self.interval)
            if not self._active:
                break
            await self.callback()

    def cancel(self) -> None:
        self._active = False
        task, self._task = self._task, None
        if task is None or task.done():
            return

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()


class PurchaseFlowController:
    """State machine for one in-progress voucher purchase."""

    def __init__(
        self,
        voucher: Voucher,
        gateway: PaymentGatewayClient,
        voucher_manager: VoucherManager,
        poll_interval: float = PAYMENT_POLL_INTERVAL_SECONDS,
    ):
        self.voucher = voucher
        self.gateway = gateway
        self.voucher_manager = voucher_manager
        self.step = PurchaseStep.ENTER_PHONE

        self.phone: Optional[str] = None
        self.identity_name: Optional[str] = None
        self.reference: Optional[str] = None
        self.payment_status: Optional[PaymentStatus] = None
        self.error: Optional[str] = None
        self.claimed = False
        self.purchase_recorded = False
        self.closed = False
        # Set while a provider call for this flow is in flight
        self._in_flight = False

        self._timer = PollingTimer(poll_interval, self.poll_once)

        # Free promotional vouchers are claimed without identity check or payment
        if self.voucher.is_free_promo and self.voucher.is_available():
            self.claimed = True
            self._transition(PurchaseStep.RECEIPT)

    @property
    def phone_entry_disabled(self) -> bool:
        return self.voucher.effective_status() in (
            VoucherStatus.PURCHASED,
            VoucherStatus.EXPIRED,
        )

    @property
    def is_polling(self) -> bool:
        return self._timer.active

    def _transition(self, step: PurchaseStep) -> None:
        if step not in ALLOWED_TRANSITIONS[self.step]:
            raise InvalidTransition(
                f"Illegal purchase transition: {self.step.value} -> {step.value}"
            )
        logger.info(
            f"Purchase of voucher {self.voucher.id}: {self.step.value} -> {step.value}"
        )
        self.step = step

    def _require_step(self, step: PurchaseStep) -> None:
        if self.step != step:
            raise InvalidTransition(
                f"Expected purchase step {step.value}, currently {self.step.value}"
            )

    def _begin_call(self, step: PurchaseStep) -> None:
        """Claim the flow for one provider call made from `step`."""
        self._require_step(step)
        if self._in_flight:
            raise InvalidTransition(
                f"A request for this purchase is already in progress ({step.value})"
            )
        self._in_flight = True

    def _fail(self, error: str) -> None:
        self._timer.cancel()
        self.error = error
        self._transition(PurchaseStep.FAILED)

    async def submit_phone(self, raw_phone: str) -> bool:
        """
        Verify the payer's phone number with the provider.

        Returns:
            True if the flow advanced to confirm-identity
        """
        self._require_step(PurchaseStep.ENTER_PHONE)

        if self.phone_entry_disabled:
            self.error = VOUCHER_UNAVAILABLE_MESSAGE
            return False

        try:
            validate_phone(raw_phone)
        except ValueError as e:
            self.error = str(e)
            return False

        phone = normalize_phone(raw_phone)
        self._begin_call(PurchaseStep.ENTER_PHONE)
        try:
            result = await asyncio.to_thread(self.gateway.verify_identity, phone)
        finally:
            self._in_flight = False

        if self.closed:
            return False
        if not result.success or not result.identity_name:
            self.error = result.error or "Failed to verify phone number."
            return False

        self._transition(PurchaseStep.CONFIRM_IDENTITY)
        self.phone = phone
        self.identity_name = result.identity_name
        self.error = None
        return True

    async def confirm_payment(self) -> bool:
        """
        Charge the verified phone number the voucher's price and start polling.

        A second confirmation while the first is still with the provider is
        rejected with InvalidTransition, so the payer is charged at most once.

        Returns:
            True if the payment was initiated
        """
        self._begin_call(PurchaseStep.CONFIRM_IDENTITY)
        try:
            result = await asyncio.to_thread(
                self.gateway.request_payment, self.phone, self.voucher.price
            )
        finally:
            self._in_flight = False

        if not result.success or not result.transaction_id:
            self._fail(result.error or "Payment initiation failed.")
            return False

        self._transition(PurchaseStep.VERIFY_PAYMENT)
        self.reference = result.transaction_id
        self.payment_status = PaymentStatus.PENDING
        if self.closed:
            logger.error(
                f"Purchase of voucher {self.voucher.id} was closed while payment "
                f"{self.reference} was being requested; not polling"
            )
            return True
        self._timer.start()
        return True

    async def poll_once(self) -> PurchaseStep:
        """Check the payment status once and react to the outcome."""
        if self.closed or self.step != PurchaseStep.VERIFY_PAYMENT:
            return self.step

        try:
            result = await asyncio.to_thread(
                self.gateway.check_payment_status, self.reference
            )
        except Exception as e:
            logger.error(
                f"Status check crashed for {self.reference}: {str(e)}\n{format_exc()}"
            )
            self.payment_status = None
            self._fail("Could not retrieve payment status.")
            return self.step

        # The flow may have been closed while the request was in flight
        if self.closed or self.step != PurchaseStep.VERIFY_PAYMENT:
            return self.step

        if result.success:
            self.payment_status = result.status
            if result.status == PaymentStatus.SUCCESS:
                await self._complete_purchase()
            elif result.status == PaymentStatus.FAILED:
                reason = (result.data or {}).get("reason")
                self._fail(reason or PAYMENT_NOT_SUCCESSFUL_MESSAGE)
        elif not result.is_retryable:
            self._fail(result.error or "Could not retrieve payment status.")

        return self.step

    async def _complete_purchase(self) -> None:
        # Stop polling before writing so a second success can never be observed
        self._timer.cancel()

        try:
            self.purchase_recorded = await self.voucher_manager.mark_purchased(
                self.voucher.id, self.phone
            )
        except Exception as e:
            logger.error(
                f"Failed to record purchase of voucher {self.voucher.id} "
                f"(reference {self.reference}): {str(e)}\n{format_exc()}"
            )
            self.purchase_recorded = False

        self.error = None
        self._transition(PurchaseStep.RECEIPT)

    def retry(self) -> None:
        """Reset a failed flow so the payer can start again."""
        self._require_step(PurchaseStep.FAILED)
        self._timer.cancel()

        self.phone = None
        self.identity_name = None
        self.reference = None
        self.payment_status = None
        self.error = None
        self._transition(PurchaseStep.ENTER_PHONE)

    def close(self) -> None:
        """Abandon the flow, stopping any polling still in progress."""
        self.closed = True
        self._timer.cancel()

    def snapshot(self) -> PurchaseFlowState:
        return PurchaseFlowState(
            voucher_id=self.voucher.id,
            voucher_title=self.voucher.title,
            price=self.voucher.price,
            step=self.step,
            phone_entry_disabled=self.phone_entry_disabled,
            phone=self.phone,
            identity_name=self.identity_name,
            reference=self.reference,
            payment_status=self.payment_status,
            error=self.error,
            claimed=self.claimed,
            purchase_recorded=self.purchase_recorded,
            code=self.voucher.code if self.step == PurchaseStep.RECEIPT else None,
        )
