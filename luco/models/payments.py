"""
Payment Data Models

This module contains the models exchanged with the mobile money provider.
None of these are persisted: transactions live only in the in-memory
payment status store.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PaymentStatus(str, Enum):
    """Payment status enumeration."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @classmethod
    def from_gateway(cls, raw_status: Optional[str]) -> "PaymentStatus":
        """Decode the provider's status string; unknown values are still pending."""
        status = (raw_status or "").strip().lower()
        if status in ("succeeded", "success"):
            return cls.SUCCESS
        if status == "failed":
            return cls.FAILED
        return cls.PENDING

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class GatewayErrorKind(str, Enum):
    """Failure categories surfaced by the payment gateway client."""

    IDENTITY_VERIFICATION_FAILED = "identity_verification_failed"
    PAYMENT_INITIATION_FAILED = "payment_initiation_failed"
    CONNECTIVITY_FAILURE = "connectivity_failure"
    STATUS_CHECK_FAILED = "status_check_failed"
    TRANSACTION_NOT_FOUND = "transaction_not_found"  # Retryable while polling
    VALIDATION_FAILURE = "validation_failure"


class PaymentState(BaseModel):
    """Last locally observed state of a payment reference."""

    status: PaymentStatus
    failure_reason: Optional[str] = None


class GatewayResult(BaseModel):
    """Tagged result returned by every gateway operation."""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[GatewayErrorKind] = None


class IdentityResult(GatewayResult):
    identity_name: Optional[str] = None


class PaymentRequestResult(GatewayResult):
    transaction_id: Optional[str] = None


class StatusCheckResult(GatewayResult):
    data: Optional[Dict[str, Any]] = None
    status: Optional[PaymentStatus] = None

    @property
    def is_retryable(self) -> bool:
        return self.error_kind == GatewayErrorKind.TRANSACTION_NOT_FOUND


# Request bodies for the admin payment console
class IdentityRequest(BaseModel):
    phone: str = Field(..., min_length=1)


class PaymentRequest(BaseModel):
    phone: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0, description="Amount in UGX")
    reference: Optional[str] = None


class StatusRequest(BaseModel):
    reference: str = Field(..., min_length=1)
