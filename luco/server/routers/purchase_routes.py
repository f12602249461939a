import logging
from traceback import format_exc
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from luco.server.dependencies import get_purchase_registry, get_voucher_manager
from luco.services.purchase.flow import (
    InvalidTransition,
    PurchaseFlowController,
    PurchaseFlowState,
)
from luco.services.purchase.registry import PurchaseFlowRegistry
from luco.services.vouchers import VoucherManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class PhoneSubmission(BaseModel):
    phone: str


class PurchaseFlowResponse(PurchaseFlowState):
    flow_id: str


# Create a router for voucher purchases
purchase_router = APIRouter()

Registry = Annotated[PurchaseFlowRegistry, Depends(get_purchase_registry)]


def _get_flow(registry: PurchaseFlowRegistry, flow_id: str) -> PurchaseFlowController:
    flow = registry.get(flow_id)
    if flow is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Purchase flow not found"
        )
    return flow


def _flow_response(flow_id: str, flow: PurchaseFlowController) -> PurchaseFlowResponse:
    return PurchaseFlowResponse(flow_id=flow_id, **flow.snapshot().model_dump())


@purchase_router.post(
    "/{voucher_id}",
    response_model=PurchaseFlowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_purchase(
    voucher_id: str,
    registry: Registry,
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
):
    """Open a purchase flow for a voucher. Free promotions are claimed immediately."""
    try:
        voucher = await voucher_manager.get_voucher(voucher_id)
    except Exception as e:
        logger.error(f"Error loading voucher {voucher_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load voucher",
        )

    if voucher is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Voucher not found"
        )

    flow_id = registry.start(voucher)
    return _flow_response(flow_id, registry.get(flow_id))


@purchase_router.get("/flows/{flow_id}", response_model=PurchaseFlowResponse)
async def get_purchase_flow(flow_id: str, registry: Registry):
    return _flow_response(flow_id, _get_flow(registry, flow_id))


@purchase_router.post("/flows/{flow_id}/phone", response_model=PurchaseFlowResponse)
async def submit_phone(flow_id: str, submission: PhoneSubmission, registry: Registry):
    """Verify the payer's phone number; a rejected number is reported in `error`."""
    flow = _get_flow(registry, flow_id)
    try:
        await flow.submit_phone(submission.phone)
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _flow_response(flow_id, flow)


@purchase_router.post("/flows/{flow_id}/confirm", response_model=PurchaseFlowResponse)
async def confirm_payment(flow_id: str, registry: Registry):
    """Charge the verified number. The flow then polls until the payment settles."""
    flow = _get_flow(registry, flow_id)
    try:
        await flow.confirm_payment()
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _flow_response(flow_id, flow)


@purchase_router.post("/flows/{flow_id}/retry", response_model=PurchaseFlowResponse)
async def retry_purchase(flow_id: str, registry: Registry):
    flow = _get_flow(registry, flow_id)
    try:
        flow.retry()
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return _flow_response(flow_id, flow)


@purchase_router.delete("/flows/{flow_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_purchase_flow(flow_id: str, registry: Registry):
    if not registry.discard(flow_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Purchase flow not found"
        )
