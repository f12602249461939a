import os

from passlib.context import CryptContext

# config.py reads these at import time
os.environ.setdefault("LUCO_ENV", "d")
os.environ.setdefault("LUCO_AUTH_JWT_KEY", "test-jwt-key")
os.environ["LUCO_ADMIN_USERNAME"] = "admin"
os.environ["LUCO_ADMIN_PASSWORD_HASH"] = CryptContext(schemes=["bcrypt"]).hash(
    "admin-password"
)
os.environ.pop("LUCO_HF_API_KEY", None)

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402

from luco.models.vouchers import Voucher  # noqa: E402
from luco.services.payments.status_store import PaymentStatusStore  # noqa: E402


@pytest.fixture
def make_voucher():
    def _make(**overrides) -> Voucher:
        data = {
            "id": "voucher-1",
            "title": "Luco Day Pass",
            "description": "One day of unlimited rides",
            "category": "Luco Day",
            "price": 5000,
            "discount": "20% off",
            "expiry_date": "31 Dec 2099",
            "code": "LUCO-1234",
        }
        data.update(overrides)
        return Voucher(**data)

    return _make


@pytest.fixture
def status_store():
    return PaymentStatusStore()


@pytest.fixture
def firestore_service():
    """Firestore double: async document operations plus a synchronous batch."""
    service = MagicMock()
    service.create_document = AsyncMock(return_value="new-id")
    service.get_document = AsyncMock(return_value=None)
    service.update_document = AsyncMock(return_value=True)
    service.update_document_if = AsyncMock(return_value=True)
    service.delete_document = AsyncMock(return_value=True)
    service.delete_documents = AsyncMock(side_effect=lambda _, ids: len(ids))
    service.query_collection = AsyncMock(return_value=[])
    service.exists = AsyncMock(return_value=False)
    return service
