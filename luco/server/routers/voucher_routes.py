import logging
from traceback import format_exc
from typing import Annotated, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from luco.models.shared import VoucherCategory
from luco.models.vouchers import VoucherCreate, VoucherResponse, VoucherUpdate
from luco.server.dependencies import get_voucher_manager, get_voucher_profile_manager
from luco.server.routers.auth_routes import Admin, get_current_admin
from luco.services.payments.phone import normalize_phone, validate_phone
from luco.services.vouchers import (
    VoucherImportError,
    VoucherManager,
    VoucherNotFoundError,
    VoucherProfileManager,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class VoucherImportRequest(BaseModel):
    profile_id: str
    csv_text: str = Field(..., min_length=1)
    # CSV header -> voucher field
    column_mapping: Optional[Dict[str, str]] = None


class VoucherImportResponse(BaseModel):
    created: int
    voucher_ids: List[str]


# Create a router for voucher operations
voucher_router = APIRouter()


@voucher_router.get("/", response_model=List[VoucherResponse])
async def list_vouchers(
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
    category: Optional[str] = None,
):
    """List vouchers newest first, with their status as of today."""
    try:
        voucher_category = VoucherCategory.from_label(category) if category else None
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        vouchers = await voucher_manager.list_vouchers(voucher_category)
        return [VoucherResponse.from_voucher(v) for v in vouchers]
    except Exception as e:
        logger.error(f"Error listing vouchers: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list vouchers",
        )


@voucher_router.get("/purchased", response_model=List[VoucherResponse])
async def list_purchased_vouchers(
    phone: str,
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
):
    """List the vouchers bought with a phone number, most recent first."""
    try:
        validate_phone(phone)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        vouchers = await voucher_manager.find_purchased_by_phone(normalize_phone(phone))
        return [VoucherResponse.from_voucher(v) for v in vouchers]
    except Exception as e:
        logger.error(f"Error listing purchased vouchers: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list purchased vouchers",
        )


@voucher_router.get("/{voucher_id}", response_model=VoucherResponse)
async def get_voucher(
    voucher_id: str,
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
):
    try:
        voucher = await voucher_manager.get_voucher(voucher_id)
        if voucher is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Voucher not found"
            )
        return VoucherResponse.from_voucher(voucher)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting voucher {voucher_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get voucher",
        )


@voucher_router.post("/", status_code=status.HTTP_201_CREATED)
async def create_voucher(
    voucher: VoucherCreate,
    current_admin: Annotated[Admin, Depends(get_current_admin)],
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
):
    try:
        voucher_id = await voucher_manager.create_voucher(voucher)
        logger.info(f"Voucher {voucher_id} created by {current_admin.username}")
        return {"id": voucher_id}
    except Exception as e:
        logger.error(f"Error creating voucher: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create voucher",
        )


@voucher_router.put("/{voucher_id}")
async def update_voucher(
    voucher_id: str,
    update: VoucherUpdate,
    current_admin: Annotated[Admin, Depends(get_current_admin)],
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
):
    try:
        await voucher_manager.update_voucher(
            voucher_id, update.model_dump(mode="json", exclude_unset=True)
        )
        return {"id": voucher_id}
    except VoucherNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating voucher {voucher_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update voucher",
        )


@voucher_router.delete("/{voucher_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_voucher(
    voucher_id: str,
    current_admin: Annotated[Admin, Depends(get_current_admin)],
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
):
    try:
        await voucher_manager.delete_voucher(voucher_id)
    except VoucherNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error deleting voucher {voucher_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete voucher",
        )


@voucher_router.post(
    "/import",
    response_model=VoucherImportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def import_vouchers(
    request: VoucherImportRequest,
    current_admin: Annotated[Admin, Depends(get_current_admin)],
    voucher_manager: Annotated[VoucherManager, Depends(get_voucher_manager)],
    profile_manager: Annotated[
        VoucherProfileManager, Depends(get_voucher_profile_manager)
    ],
):
    """Create vouchers in bulk from CSV rows, using a voucher profile as template."""
    try:
        profile = await profile_manager.get_profile(request.profile_id)
        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Voucher profile not found",
            )

        voucher_ids = await voucher_manager.import_vouchers_from_csv(
            profile, request.csv_text, request.column_mapping
        )
        return VoucherImportResponse(created=len(voucher_ids), voucher_ids=voucher_ids)
    except HTTPException:
        raise
    except VoucherImportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error importing vouchers: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to import vouchers",
        )
