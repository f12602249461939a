from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, HttpUrl

from luco.models.shared import FirestoreBaseModel


class BannerCreate(BaseModel):
    image_url: HttpUrl
    description: str = Field(..., min_length=1)
    image_hint: str = Field(..., min_length=1, description="Hint for image search")


class Banner(FirestoreBaseModel):
    """Banner document model for the banners collection."""

    id: str
    image_url: str
    description: str
    image_hint: str
    created_at: Optional[datetime] = None
