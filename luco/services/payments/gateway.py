"""
Mobile Money Gateway Client

Wraps the three endpoints of the payment provider (identity lookup, payment
request and payment status) and normalises their responses into tagged
results. No method raises: every failure is reported through `success`,
`error` and `error_kind` so callers can branch on the outcome.
"""

import logging
import secrets
from traceback import format_exc
from typing import Any, Dict, Optional, Union

import requests

from config import (
    PAYMENT_API_BASE_URL,
    PAYMENT_HTTP_TIMEOUT_SECONDS,
    PAYMENT_REFERENCE_PREFIX,
)
from luco.models.payments import (
    GatewayErrorKind,
    IdentityResult,
    PaymentRequestResult,
    PaymentState,
    PaymentStatus,
    StatusCheckResult,
)
from luco.services.payments.status_store import PaymentStatusStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Returned when the provider has no record of a reference yet; pollers keep polling on it
TRANSACTION_NOT_FOUND_MESSAGE = "Transaction not found. Please check your reference."


def generate_reference(prefix: str = PAYMENT_REFERENCE_PREFIX) -> str:
    """Generate a local payment reference such as `FS-1A2B3C4D5E6F`."""
    return f"{prefix}-{secrets.token_hex(6).upper()}"


def format_amount(amount: Union[int, float]) -> str:
    if isinstance(amount, float) and amount.is_integer():
        amount = int(amount)
    return str(amount)


class PaymentGatewayClient:
    """Client for the mobile money provider's identity and payment API."""

    IDENTITY_PATH = "/identity/msisdn"
    REQUEST_PAYMENT_PATH = "/api/v1/request_payment"
    PAYMENT_STATUS_PATH = "/api/v1/payment_webhook"

    HEADERS = {
        "Content-Type": "application/json",
        "accept": "application/json",
    }

    def __init__(
        self,
        status_store: PaymentStatusStore,
        base_url: str = PAYMENT_API_BASE_URL,
        timeout: float = PAYMENT_HTTP_TIMEOUT_SECONDS,
        reference_prefix: str = PAYMENT_REFERENCE_PREFIX,
        session: Optional[requests.Session] = None,
    ):
        self.status_store = status_store
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.reference_prefix = reference_prefix
        self.session = session or requests.Session()

    def _post(self, path: str, payload: Dict[str, Any]) -> requests.Response:
        return self.session.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=self.HEADERS,
            timeout=self.timeout,
        )

    @staticmethod
    def _json_body(response: requests.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def verify_identity(self, phone: str) -> IdentityResult:
        """
        Look up the registered name behind a phone number.

        Args:
            phone: Phone number in international format; a leading `+` is added if missing

        Returns:
            IdentityResult with `identity_name` on success
        """
        msisdn = phone if phone.startswith("+") else f"+{phone}"

        try:
            response = self._post(self.IDENTITY_PATH, {"msisdn": msisdn})
        except requests.RequestException as e:
            logger.error(f"Identity verification error: {str(e)}\n{format_exc()}")
            return IdentityResult(
                success=False,
                error="Could not connect to identity service.",
                error_kind=GatewayErrorKind.CONNECTIVITY_FAILURE,
            )

        data = self._json_body(response)
        if data.get("success"):
            return IdentityResult(success=True, identity_name=data.get("identityname"))

        message = data.get("message")
        logger.warning(f"Identity verification failed for {msisdn}: {message}")
        return IdentityResult(
            success=False,
            error=message or "Failed to verify phone number.",
            error_kind=GatewayErrorKind.IDENTITY_VERIFICATION_FAILED,
        )

    def request_payment(
        self,
        phone: str,
        amount: Union[int, float],
        reference: Optional[str] = None,
    ) -> PaymentRequestResult:
        """
        Ask the provider to collect `amount` from `phone`.

        The reference is registered as pending before the call is made, so a
        later status check always has an entry to update.

        Args:
            phone: Payer phone number; the leading `+` is stripped for the provider
            amount: Amount in UGX
            reference: Optional caller-supplied reference; generated when omitted

        Returns:
            PaymentRequestResult carrying the reference whether or not the request succeeded
        """
        our_reference = reference or generate_reference(self.reference_prefix)
        self.status_store.register_pending(our_reference)

        payload = {
            "amount": format_amount(amount),
            "number": phone[1:] if phone.startswith("+") else phone,
            "refer": our_reference,
        }

        try:
            response = self._post(self.REQUEST_PAYMENT_PATH, payload)
        except requests.RequestException as e:
            logger.error(f"Payment request error: {str(e)}\n{format_exc()}")
            error = "Failed to connect to payment service."
            self.status_store.set(
                our_reference,
                PaymentState(status=PaymentStatus.FAILED, failure_reason=error),
            )
            return PaymentRequestResult(
                success=False,
                transaction_id=our_reference,
                error=error,
                error_kind=GatewayErrorKind.CONNECTIVITY_FAILURE,
            )

        body = self._json_body(response)
        if not response.ok or body.get("success") is False:
            message = (
                body.get("error")
                or body.get("message")
                or "An unknown error occurred during payment initiation."
            )
            error = f"Payment initiation failed: {message}"
            logger.error(
                f"Payment request failed: {message}, payload: {payload}, "
                f"status: {response.status_code}, response: {body}"
            )
            self.status_store.set(
                our_reference,
                PaymentState(status=PaymentStatus.FAILED, failure_reason=error),
            )
            return PaymentRequestResult(
                success=False,
                transaction_id=our_reference,
                error=error,
                error_kind=GatewayErrorKind.PAYMENT_INITIATION_FAILED,
            )

        logger.info(f"Payment {our_reference} initiated for {payload['amount']} UGX")
        return PaymentRequestResult(success=True, transaction_id=our_reference)

    def check_payment_status(self, reference: str) -> StatusCheckResult:
        """
        Fetch the provider's view of a payment and mirror it into the status store.

        A reference the provider does not know yet is reported with
        TRANSACTION_NOT_FOUND, which pollers treat as "keep waiting".
        """
        try:
            response = self._post(self.PAYMENT_STATUS_PATH, {"reference": reference})
        except requests.RequestException as e:
            logger.error(f"Error checking payment status: {str(e)}\n{format_exc()}")
            return StatusCheckResult(
                success=False,
                error=f"Failed to check status: {str(e)}",
                error_kind=GatewayErrorKind.CONNECTIVITY_FAILURE,
            )

        body = self._json_body(response)
        if str(body.get("message", "")).strip().lower() == "transaction not found":
            return StatusCheckResult(
                success=False,
                error=TRANSACTION_NOT_FOUND_MESSAGE,
                error_kind=GatewayErrorKind.TRANSACTION_NOT_FOUND,
            )

        if not response.ok:
            return StatusCheckResult(
                success=False,
                error=f"API returned status {response.status_code}: {response.text}",
                error_kind=GatewayErrorKind.STATUS_CHECK_FAILED,
            )

        if not body:
            return StatusCheckResult(
                success=False,
                error="Received an invalid response from the payment service.",
                error_kind=GatewayErrorKind.STATUS_CHECK_FAILED,
            )

        status = PaymentStatus.from_gateway(body.get("status"))
        if status == PaymentStatus.FAILED:
            state = PaymentState(
                status=status,
                failure_reason=body.get("reason") or "Reason not provided",
            )
        else:
            state = PaymentState(status=status)
        self.status_store.set(reference, state)

        return StatusCheckResult(success=True, data=body, status=status)
