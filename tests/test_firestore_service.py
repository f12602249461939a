from unittest.mock import MagicMock

import pytest

from luco.services import firestore_service as firestore_module
from luco.services.firestore_service import FirestoreService

EXPECTED = {"status": "active"}
UPDATE = {"status": "purchased", "purchased_by": "+256708215305"}


@pytest.fixture
def service(monkeypatch):
    # Run the transaction body directly against the fake transaction
    monkeypatch.setattr(firestore_module, "transactional", lambda func: func)
    service = FirestoreService()
    service._client = MagicMock()
    return service


def stored(service, data):
    doc_ref = service.get_document_ref("vouchers", "voucher-1")
    snapshot = MagicMock()
    snapshot.exists = data is not None
    snapshot.to_dict.return_value = data
    doc_ref.get.return_value = snapshot
    return doc_ref


async def test_update_document_if_applies_when_fields_match(service):
    doc_ref = stored(service, {"status": "active", "code": "LUCO-1234"})
    transaction = service.client.transaction.return_value

    assert await service.update_document_if("vouchers", "voucher-1", EXPECTED, UPDATE)

    doc_ref.get.assert_called_once_with(transaction=transaction)
    transaction.update.assert_called_once_with(doc_ref, UPDATE)


async def test_update_document_if_skips_changed_document(service):
    stored(service, {"status": "purchased", "code": "LUCO-1234"})
    transaction = service.client.transaction.return_value

    assert not await service.update_document_if(
        "vouchers", "voucher-1", EXPECTED, UPDATE
    )
    transaction.update.assert_not_called()


async def test_update_document_if_skips_missing_document(service):
    stored(service, None)
    transaction = service.client.transaction.return_value

    assert not await service.update_document_if(
        "vouchers", "voucher-1", EXPECTED, UPDATE
    )
    transaction.update.assert_not_called()


async def test_update_document_if_reraises_storage_errors(service):
    doc_ref = stored(service, {"status": "active"})
    doc_ref.get.side_effect = RuntimeError("deadline exceeded")

    with pytest.raises(RuntimeError):
        await service.update_document_if("vouchers", "voucher-1", EXPECTED, UPDATE)
