"""
Admin console over the mobile money provider.

Mirrors the three gateway operations so operators can check a number, send a
manual payment request or look up a reference without going through a
voucher purchase.
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from luco.models.payments import (
    GatewayErrorKind,
    IdentityRequest,
    IdentityResult,
    PaymentRequest,
    PaymentRequestResult,
    PaymentState,
    StatusCheckResult,
    StatusRequest,
)
from luco.server.dependencies import get_payment_gateway, get_payment_status_store
from luco.server.routers.auth_routes import get_current_admin
from luco.services.payments.gateway import PaymentGatewayClient
from luco.services.payments.phone import normalize_phone, validate_phone
from luco.services.payments.status_store import PaymentStatusStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create payment router; every route is admin only
payment_router = APIRouter(dependencies=[Depends(get_current_admin)])

Gateway = Annotated[PaymentGatewayClient, Depends(get_payment_gateway)]


@payment_router.post("/identity", response_model=IdentityResult)
async def verify_identity(request: IdentityRequest, gateway: Gateway):
    try:
        validate_phone(request.phone)
    except ValueError as e:
        return IdentityResult(
            success=False,
            error=str(e),
            error_kind=GatewayErrorKind.VALIDATION_FAILURE,
        )

    return await asyncio.to_thread(
        gateway.verify_identity, normalize_phone(request.phone)
    )


@payment_router.post("/request", response_model=PaymentRequestResult)
async def request_payment(request: PaymentRequest, gateway: Gateway):
    try:
        validate_phone(request.phone)
    except ValueError as e:
        return PaymentRequestResult(
            success=False,
            error=str(e),
            error_kind=GatewayErrorKind.VALIDATION_FAILURE,
        )

    result = await asyncio.to_thread(
        gateway.request_payment,
        normalize_phone(request.phone),
        request.amount,
        request.reference,
    )
    logger.info(
        f"Manual payment request {result.transaction_id}: success={result.success}"
    )
    return result


@payment_router.post("/status", response_model=StatusCheckResult)
async def check_payment_status(request: StatusRequest, gateway: Gateway):
    return await asyncio.to_thread(gateway.check_payment_status, request.reference)


@payment_router.get("/store/{reference}", response_model=PaymentState)
async def get_stored_payment_state(
    reference: str,
    status_store: Annotated[PaymentStatusStore, Depends(get_payment_status_store)],
):
    """Last status observed locally for a reference, without calling the provider."""
    state = status_store.get(reference)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Unknown payment reference"
        )
    return state
