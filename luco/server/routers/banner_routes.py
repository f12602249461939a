import logging
from traceback import format_exc
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status

from luco.models.banners import Banner, BannerCreate
from luco.server.dependencies import get_banner_manager
from luco.server.routers.auth_routes import get_current_admin
from luco.services.banners import BannerManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create a router for storefront banners
banner_router = APIRouter()

Banners = Annotated[BannerManager, Depends(get_banner_manager)]


@banner_router.get("/", response_model=List[Banner])
async def get_banners(banner_manager: Banners):
    """Latest banners for the storefront carousel."""
    try:
        return await banner_manager.get_banners()
    except Exception as e:
        logger.error(f"Error getting banners: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get banners",
        )


@banner_router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
async def add_banner(banner: BannerCreate, banner_manager: Banners):
    try:
        banner_id = await banner_manager.add_banner(banner)
        return {"id": banner_id}
    except Exception as e:
        logger.error(f"Error adding banner: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add banner",
        )


@banner_router.delete(
    "/{banner_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def delete_banner(banner_id: str, banner_manager: Banners):
    try:
        await banner_manager.delete_banner(banner_id)
    except Exception as e:
        logger.error(f"Error deleting banner {banner_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete banner",
        )
