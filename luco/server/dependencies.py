"""
Shared service instances for the routers.

Each getter is used as a FastAPI dependency so tests can swap in doubles
with `app.dependency_overrides`.
"""

from fastapi import HTTPException, status

from config import HF_API_KEY
from luco.services.banners import BannerManager
from luco.services.llm.hugging_face import HuggingFaceAssistantService
from luco.services.members import MemberManager, SubscriberManager
from luco.services.payments.gateway import PaymentGatewayClient
from luco.services.payments.status_store import PaymentStatusStore
from luco.services.purchase.registry import PurchaseFlowRegistry
from luco.services.vouchers import VoucherManager, VoucherProfileManager

# One payment status store per server process
_payment_status_store = PaymentStatusStore()
_payment_gateway = None
_purchase_registry = None


def get_payment_status_store() -> PaymentStatusStore:
    return _payment_status_store


def get_payment_gateway() -> PaymentGatewayClient:
    global _payment_gateway
    if _payment_gateway is None:
        _payment_gateway = PaymentGatewayClient(_payment_status_store)
    return _payment_gateway


def get_voucher_manager() -> VoucherManager:
    return VoucherManager()


def get_voucher_profile_manager() -> VoucherProfileManager:
    return VoucherProfileManager()


def get_member_manager() -> MemberManager:
    return MemberManager()


def get_subscriber_manager() -> SubscriberManager:
    return SubscriberManager()


def get_banner_manager() -> BannerManager:
    return BannerManager()


def get_purchase_registry() -> PurchaseFlowRegistry:
    global _purchase_registry
    if _purchase_registry is None:
        _purchase_registry = PurchaseFlowRegistry(
            gateway=get_payment_gateway(), voucher_manager=get_voucher_manager()
        )
    return _purchase_registry


def get_assistant_service() -> HuggingFaceAssistantService:
    if not HF_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The assistant is not configured",
        )
    return HuggingFaceAssistantService()


def shutdown() -> None:
    """Stop every purchase flow that is still polling."""
    if _purchase_registry is not None:
        _purchase_registry.close_all()
