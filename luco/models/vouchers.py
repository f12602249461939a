"""
Voucher Data Models

This module contains models for vouchers and the voucher profiles used as
templates when importing vouchers in bulk.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from luco.models.shared import FirestoreBaseModel, VoucherCategory, VoucherStatus

# Expiry dates are free text entered by admins; these are the formats seen in practice
EXPIRY_DATE_FORMATS = (
    "%d %b %Y",
    "%d %B %Y",
    "%Y-%m-%d",
    "%d/%m/%Y",
    "%b %d, %Y",
    "%B %d, %Y",
)


def parse_expiry_date(expiry_date: Optional[str]) -> Optional[date]:
    """Parse an expiry date string, returning None when it cannot be understood."""
    if not expiry_date:
        return None

    value = expiry_date.strip()
    for fmt in EXPIRY_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def _coerce_category(value):
    if isinstance(value, str) and not isinstance(value, VoucherCategory):
        return VoucherCategory.from_label(value)
    return value


class BaseVoucher(BaseModel):
    """Base voucher model shared between Firestore and API."""

    title: str = Field(..., min_length=1, description="Voucher title")
    description: str = Field(..., min_length=1, description="Voucher description")
    category: VoucherCategory = Field(..., description="Voucher category")
    price: int = Field(..., ge=0, description="Price in UGX")
    discount: str = Field(..., min_length=1, description="Discount description")
    expiry_date: str = Field(..., description="Expiry date as entered by the admin")
    code: str = Field(..., min_length=1, description="Redemption code")
    is_new: bool = Field(False, description="Whether to highlight the voucher as new")
    status: VoucherStatus = Field(VoucherStatus.ACTIVE, description="Stored status")
    purchased_by: Optional[str] = Field(None, description="Purchaser phone number")
    purchased_at: Optional[datetime] = Field(None, description="Purchase timestamp")

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _coerce_category(value)


class Voucher(BaseVoucher, FirestoreBaseModel):
    """Voucher document model for the vouchers collection."""

    id: str = Field(..., description="Document ID")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    def effective_status(self, today: Optional[date] = None) -> VoucherStatus:
        """Stored status, except that a past expiry date always reads as expired."""
        today = today or date.today()
        expiry = parse_expiry_date(self.expiry_date)
        if expiry is not None and expiry < today:
            return VoucherStatus.EXPIRED
        return VoucherStatus(self.status)

    def is_available(self, today: Optional[date] = None) -> bool:
        return self.effective_status(today) == VoucherStatus.ACTIVE

    @property
    def is_free_promo(self) -> bool:
        """Zero-priced promotional vouchers are claimed rather than paid for."""
        return self.category == VoucherCategory.PROMO and self.price == 0


class VoucherCreate(BaseVoucher):
    """Request body for creating a voucher."""

    pass


class VoucherUpdate(BaseModel):
    """Request body for partially updating a voucher."""

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[VoucherCategory] = None
    price: Optional[int] = Field(None, ge=0)
    discount: Optional[str] = Field(None, min_length=1)
    expiry_date: Optional[str] = None
    code: Optional[str] = Field(None, min_length=1)
    is_new: Optional[bool] = None
    status: Optional[VoucherStatus] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _coerce_category(value)


class VoucherResponse(BaseModel):
    """Voucher as exposed by the API, with its read-time status."""

    id: str
    title: str
    description: str
    category: str
    price: int
    discount: str
    expiry_date: str
    code: str
    is_new: bool
    status: VoucherStatus
    purchased_by: Optional[str] = None
    purchased_at: Optional[datetime] = None

    @classmethod
    def from_voucher(
        cls, voucher: Voucher, today: Optional[date] = None
    ) -> "VoucherResponse":
        data = voucher.model_dump(exclude={"created_at", "status"})
        return cls(**data, status=voucher.effective_status(today))


class BaseVoucherProfile(BaseModel):
    """Template for vouchers created in bulk."""

    name: str = Field(..., min_length=1, description="Profile name")
    title: str = Field(..., min_length=1, description="Voucher title")
    description: str = Field(..., min_length=1, description="Voucher description")
    category: VoucherCategory = Field(..., description="Voucher category")
    price: int = Field(..., ge=0, description="Price in UGX")
    discount: str = Field(..., min_length=1, description="Discount description")

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value):
        return _coerce_category(value)


class VoucherProfile(BaseVoucherProfile, FirestoreBaseModel):
    """Voucher profile document model for the voucher_profiles collection."""

    id: str = Field(..., description="Document ID")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
