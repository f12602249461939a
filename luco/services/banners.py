import logging
from typing import List, Optional

from luco.models import BANNERS_COLLECTION
from luco.models.banners import Banner, BannerCreate
from luco.services.firestore_service import FirestoreService, get_firestore_service

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Number of banners shown in the storefront carousel
CAROUSEL_SIZE = 5


class BannerManager:
    """Manages storefront banner documents."""

    def __init__(self, firestore_service: Optional[FirestoreService] = None):
        self.firestore_service = firestore_service or get_firestore_service()

    async def add_banner(self, banner: BannerCreate) -> str:
        return await self.firestore_service.create_document(
            collection_name=BANNERS_COLLECTION,
            document_data=banner.model_dump(mode="json"),
        )

    async def get_banners(self, limit: int = CAROUSEL_SIZE) -> List[Banner]:
        return await self.firestore_service.query_collection(
            collection_name=BANNERS_COLLECTION,
            order_by="created_at",
            descending=True,
            limit=limit,
            model_class=Banner,
        )

    async def delete_banner(self, banner_id: str) -> None:
        await self.firestore_service.delete_document(BANNERS_COLLECTION, banner_id)
