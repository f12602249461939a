"""
Models Package

This package contains database schema models organized by domain:
- vouchers.py: Voucher and voucher profile models
- members.py: Member and subscriber models
- banners.py: Storefront banner models
- payments.py: Payment gateway results and in-memory payment state
- shared.py: Common base models and enumerations
"""

# Import all models for easy access
from luco.models.banners import Banner, BannerCreate
from luco.models.members import Member, MemberCreate, MemberUpdate, Subscriber
from luco.models.payments import (
    GatewayErrorKind,
    IdentityResult,
    PaymentRequestResult,
    PaymentState,
    PaymentStatus,
    StatusCheckResult,
)
from luco.models.shared import FirestoreBaseModel, VoucherCategory, VoucherStatus
from luco.models.vouchers import (
    BaseVoucher,
    BaseVoucherProfile,
    Voucher,
    VoucherCreate,
    VoucherProfile,
    VoucherResponse,
    VoucherUpdate,
)

# Firestore collection names
VOUCHERS_COLLECTION = "vouchers"
VOUCHER_PROFILES_COLLECTION = "voucher_profiles"
MEMBERS_COLLECTION = "members"
SUBSCRIBERS_COLLECTION = "subscribers"
BANNERS_COLLECTION = "banners"

# Collection model mappings for Firestore operations
COLLECTION_MODELS = {
    VOUCHERS_COLLECTION: Voucher,
    VOUCHER_PROFILES_COLLECTION: VoucherProfile,
    MEMBERS_COLLECTION: Member,
    SUBSCRIBERS_COLLECTION: Subscriber,
    BANNERS_COLLECTION: Banner,
}

__all__ = [
    # Base models
    "FirestoreBaseModel",
    # Voucher models
    "BaseVoucher",
    "BaseVoucherProfile",
    "Voucher",
    "VoucherCategory",
    "VoucherCreate",
    "VoucherProfile",
    "VoucherResponse",
    "VoucherStatus",
    "VoucherUpdate",
    # Member models
    "Member",
    "MemberCreate",
    "MemberUpdate",
    "Subscriber",
    # Banner models
    "Banner",
    "BannerCreate",
    # Payment models
    "GatewayErrorKind",
    "IdentityResult",
    "PaymentRequestResult",
    "PaymentState",
    "PaymentStatus",
    "StatusCheckResult",
    # Collection mappings
    "COLLECTION_MODELS",
    "VOUCHERS_COLLECTION",
    "VOUCHER_PROFILES_COLLECTION",
    "MEMBERS_COLLECTION",
    "SUBSCRIBERS_COLLECTION",
    "BANNERS_COLLECTION",
]
