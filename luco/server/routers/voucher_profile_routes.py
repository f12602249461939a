import logging
from traceback import format_exc
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status

from luco.models.vouchers import BaseVoucherProfile, VoucherProfile
from luco.server.dependencies import get_voucher_profile_manager
from luco.server.routers.auth_routes import get_current_admin
from luco.services.vouchers import VoucherNotFoundError, VoucherProfileManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create a router for voucher profile operations; every route is admin only
voucher_profile_router = APIRouter(dependencies=[Depends(get_current_admin)])

ProfileManager = Annotated[VoucherProfileManager, Depends(get_voucher_profile_manager)]


@voucher_profile_router.get("/", response_model=List[VoucherProfile])
async def list_profiles(profile_manager: ProfileManager):
    try:
        return await profile_manager.list_profiles()
    except Exception as e:
        logger.error(f"Error listing voucher profiles: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list voucher profiles",
        )


@voucher_profile_router.get("/{profile_id}", response_model=VoucherProfile)
async def get_profile(profile_id: str, profile_manager: ProfileManager):
    profile = await profile_manager.get_profile(profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Voucher profile not found"
        )
    return profile


@voucher_profile_router.post("/", status_code=status.HTTP_201_CREATED)
async def create_profile(profile: BaseVoucherProfile, profile_manager: ProfileManager):
    try:
        profile_id = await profile_manager.create_profile(profile)
        return {"id": profile_id}
    except Exception as e:
        logger.error(f"Error creating voucher profile: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create voucher profile",
        )


@voucher_profile_router.put("/{profile_id}")
async def update_profile(
    profile_id: str, profile: BaseVoucherProfile, profile_manager: ProfileManager
):
    try:
        await profile_manager.update_profile(profile_id, profile)
        return {"id": profile_id}
    except VoucherNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(
            f"Error updating voucher profile {profile_id}: {str(e)}\n{format_exc()}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update voucher profile",
        )


@voucher_profile_router.delete(
    "/{profile_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_profile(profile_id: str, profile_manager: ProfileManager):
    try:
        await profile_manager.delete_profile(profile_id)
    except VoucherNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(
            f"Error deleting voucher profile {profile_id}: {str(e)}\n{format_exc()}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete voucher profile",
        )
