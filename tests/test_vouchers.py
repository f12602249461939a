from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from luco.models.shared import VoucherCategory, VoucherStatus
from luco.models.vouchers import (
    BaseVoucherProfile,
    VoucherCreate,
    VoucherProfile,
    VoucherResponse,
    parse_expiry_date,
)
from luco.services.vouchers import (
    VoucherImportError,
    VoucherManager,
    VoucherNotFoundError,
    VoucherProfileManager,
    parse_voucher_csv,
)

PROFILE = BaseVoucherProfile(
    name="Weekly pass",
    title="Luco Week Pass",
    description="Seven days of rides",
    category="Luco Week",
    price=20000,
    discount="15% off",
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("31 Dec 2024", date(2024, 12, 31)),
        ("31 December 2024", date(2024, 12, 31)),
        ("2024-12-31", date(2024, 12, 31)),
        ("31/12/2024", date(2024, 12, 31)),
        ("Dec 31, 2024", date(2024, 12, 31)),
        ("someday", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_expiry_date(value, expected):
    assert parse_expiry_date(value) == expected


def test_effective_status_expires_after_expiry_day(make_voucher):
    voucher = make_voucher(expiry_date="31 Dec 2024")

    assert voucher.effective_status(date(2024, 12, 31)) == VoucherStatus.ACTIVE
    assert voucher.effective_status(date(2025, 1, 1)) == VoucherStatus.EXPIRED
    assert not voucher.is_available(date(2025, 1, 1))


def test_effective_status_keeps_stored_status(make_voucher):
    voucher = make_voucher(status="purchased")

    assert voucher.effective_status(date(2024, 1, 1)) == VoucherStatus.PURCHASED


def test_unparseable_expiry_never_expires(make_voucher):
    voucher = make_voucher(expiry_date="end of season")

    assert voucher.effective_status(date(2100, 1, 1)) == VoucherStatus.ACTIVE


def test_category_labels_are_lenient(make_voucher):
    assert make_voucher(category="lucoday").category == VoucherCategory.LUCO_DAY
    assert make_voucher(category="PROMO").category == VoucherCategory.PROMO

    with pytest.raises(ValidationError):
        make_voucher(category="Gold")


def test_free_promo(make_voucher):
    assert make_voucher(category="Promo", price=0).is_free_promo
    assert not make_voucher(category="Promo", price=100).is_free_promo
    assert not make_voucher(category="Member", price=0).is_free_promo


def test_voucher_response_reports_effective_status(make_voucher):
    voucher = make_voucher(expiry_date="01 Jan 2020")

    response = VoucherResponse.from_voucher(voucher, today=date(2024, 1, 1))

    assert response.status == VoucherStatus.EXPIRED
    assert response.category == "Luco Day"
    assert response.id == "voucher-1"


def test_parse_voucher_csv_uses_profile_template():
    csv_text = "Code,Expiry Date,Is New\nWEEK-1,31 Dec 2099,yes\nWEEK-2,2099-06-30,no\n"

    vouchers = parse_voucher_csv(PROFILE, csv_text)

    assert [v.code for v in vouchers] == ["WEEK-1", "WEEK-2"]
    assert vouchers[0].is_new
    assert not vouchers[1].is_new
    assert vouchers[0].title == "Luco Week Pass"
    assert vouchers[0].price == 20000
    assert vouchers[0].category == VoucherCategory.LUCO_WEEK


def test_parse_voucher_csv_with_column_mapping():
    csv_text = "voucher,valid until,cost\nA1,31 Dec 2099,15000\n"

    vouchers = parse_voucher_csv(
        PROFILE,
        csv_text,
        column_mapping={"voucher": "code", "valid until": "expiry_date", "cost": "price"},
    )

    assert vouchers[0].code == "A1"
    assert vouchers[0].price == 15000


def test_parse_voucher_csv_camel_case_headers():
    vouchers = parse_voucher_csv(PROFILE, "code,expiryDate\nA1,31 Dec 2099\n")

    assert vouchers[0].expiry_date == "31 Dec 2099"


def test_parse_voucher_csv_missing_columns():
    with pytest.raises(VoucherImportError, match="expiry_date"):
        parse_voucher_csv(PROFILE, "code\nA1\n")


def test_parse_voucher_csv_reports_bad_row():
    csv_text = "code,expiry_date,price\nA1,31 Dec 2099,100\nA2,31 Dec 2099,-5\n"

    with pytest.raises(VoucherImportError, match="Row 3"):
        parse_voucher_csv(PROFILE, csv_text)


def test_parse_voucher_csv_empty():
    with pytest.raises(VoucherImportError):
        parse_voucher_csv(PROFILE, "")

    with pytest.raises(VoucherImportError, match="no voucher rows"):
        parse_voucher_csv(PROFILE, "code,expiry_date\n")


async def test_mark_purchased_is_conditional(firestore_service):
    manager = VoucherManager(firestore_service)
    purchased_at = datetime(2024, 5, 1, tzinfo=timezone.utc)

    assert await manager.mark_purchased("voucher-1", "+256708215305", purchased_at)

    firestore_service.update_document_if.assert_awaited_once_with(
        collection_name="vouchers",
        document_id="voucher-1",
        expected={"status": "active"},
        update_data={
            "status": "purchased",
            "purchased_by": "+256708215305",
            "purchased_at": purchased_at,
        },
    )


async def test_mark_purchased_reports_lost_race(firestore_service):
    firestore_service.update_document_if.return_value = False
    manager = VoucherManager(firestore_service)

    assert not await manager.mark_purchased("voucher-1", "+256708215305")


async def test_list_vouchers_filters_category(firestore_service, make_voucher):
    firestore_service.query_collection.return_value = [
        make_voucher(id="a", category="Luco Day"),
        make_voucher(id="b", category="Promo"),
    ]
    manager = VoucherManager(firestore_service)

    vouchers = await manager.list_vouchers(VoucherCategory.PROMO)

    assert [v.id for v in vouchers] == ["b"]
    assert firestore_service.query_collection.call_args.kwargs["descending"]


async def test_find_purchased_by_phone_newest_first(firestore_service, make_voucher):
    firestore_service.query_collection.return_value = [
        make_voucher(id="old", purchased_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        make_voucher(id="new", purchased_at=datetime(2024, 6, 1, tzinfo=timezone.utc)),
    ]
    manager = VoucherManager(firestore_service)

    vouchers = await manager.find_purchased_by_phone("+256708215305")

    assert [v.id for v in vouchers] == ["new", "old"]
    assert firestore_service.query_collection.call_args.kwargs["filters"] == [
        ("purchased_by", "==", "+256708215305")
    ]


async def test_update_missing_voucher(firestore_service):
    manager = VoucherManager(firestore_service)

    with pytest.raises(VoucherNotFoundError):
        await manager.update_voucher("missing", {"title": "New"})
    firestore_service.update_document.assert_not_awaited()


async def test_create_voucher_stores_enum_values(firestore_service):
    manager = VoucherManager(firestore_service)
    voucher = VoucherCreate(
        title="Promo ride",
        description="Free ride",
        category="promo",
        price=0,
        discount="100% off",
        expiry_date="31 Dec 2099",
        code="FREE-1",
    )

    assert await manager.create_voucher(voucher) == "new-id"

    document_data = firestore_service.create_document.call_args.kwargs["document_data"]
    assert document_data["category"] == "Promo"
    assert document_data["status"] == "active"


async def test_import_vouchers_writes_one_batch(firestore_service):
    manager = VoucherManager(firestore_service)
    batch = firestore_service.batch.return_value
    profile = VoucherProfile(id="p1", **PROFILE.model_dump())

    ids = await manager.import_vouchers_from_csv(
        profile, "code,expiry_date\nA1,31 Dec 2099\nA2,31 Dec 2099\n"
    )

    assert len(ids) == 2
    assert batch.set.call_count == 2
    batch.commit.assert_called_once()


async def test_import_vouchers_writes_nothing_on_bad_row(firestore_service):
    manager = VoucherManager(firestore_service)

    with pytest.raises(VoucherImportError):
        await manager.import_vouchers_from_csv(
            PROFILE, "code,expiry_date,price\nA1,31 Dec 2099,abc\n"
        )
    firestore_service.batch.assert_not_called()


async def test_profile_manager_update_missing(firestore_service):
    manager = VoucherProfileManager(firestore_service)

    with pytest.raises(VoucherNotFoundError):
        await manager.update_profile("missing", PROFILE)


async def test_profile_manager_create(firestore_service):
    manager = VoucherProfileManager(firestore_service)

    assert await manager.create_profile(PROFILE) == "new-id"
    document_data = firestore_service.create_document.call_args.kwargs["document_data"]
    assert document_data["name"] == "Weekly pass"
    assert document_data["category"] == "Luco Week"
