"""
Shared Data Models

This module contains shared Pydantic base classes and enumerations that are
used across multiple Firestore collections and API responses.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FirestoreBaseModel(BaseModel):
    """Base model for all Firestore documents with common configuration."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Validate assignments
        validate_assignment=True,
        # Use enum values instead of names
        use_enum_values=True,
    )


# Enums
class VoucherStatus(str, Enum):
    """Voucher status enumeration."""

    ACTIVE = "active"
    PURCHASED = "purchased"
    EXPIRED = "expired"


class VoucherCategory(str, Enum):
    """Voucher category enumeration."""

    LUCO_DAY = "Luco Day"
    LUCO_WEEK = "Luco Week"
    LUCO_MONTH = "Luco Month"
    MEMBER = "Member"
    PROMO = "Promo"

    @classmethod
    def from_label(cls, label: str) -> "VoucherCategory":
        """Match a category label ignoring case and spaces (e.g. "lucoday")."""
        key = label.replace(" ", "").lower()
        for category in cls:
            if category.value.replace(" ", "").lower() == key:
                return category
        raise ValueError(f"Unknown voucher category: {label}")
