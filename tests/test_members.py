import pytest

from luco.models.banners import BannerCreate
from luco.models.members import Member, MemberCreate, MemberUpdate, Subscriber
from luco.services.banners import CAROUSEL_SIZE, BannerManager
from luco.services.members import (
    DuplicateRecordError,
    MemberManager,
    RecordNotFoundError,
    SubscriberManager,
    count_sms_segments,
    pwd_context,
)

NEW_MEMBER = MemberCreate(
    username="jdoe",
    phone="0708215305",
    subscription_amount=50000,
    password="secret-password",
)


async def test_add_member_hashes_password(firestore_service):
    manager = MemberManager(firestore_service)

    assert await manager.add_member(NEW_MEMBER) == "new-id"

    kwargs = firestore_service.create_document.call_args.kwargs
    document_data = kwargs["document_data"]
    assert document_data["phone"] == "+256708215305"
    assert "password" not in document_data
    assert pwd_context.verify("secret-password", document_data["password_hash"])
    assert kwargs["timestamp_field"] == "joined_at"


async def test_add_member_rejects_duplicate_username(firestore_service):
    firestore_service.exists.side_effect = lambda _, field, value: field == "username"
    manager = MemberManager(firestore_service)

    with pytest.raises(DuplicateRecordError, match="username"):
        await manager.add_member(NEW_MEMBER)
    firestore_service.create_document.assert_not_awaited()


async def test_add_member_rejects_duplicate_phone(firestore_service):
    firestore_service.exists.side_effect = (
        lambda _, field, value: field == "phone" and value == "+256708215305"
    )
    manager = MemberManager(firestore_service)

    with pytest.raises(DuplicateRecordError, match="phone number"):
        await manager.add_member(NEW_MEMBER)


async def test_update_missing_member(firestore_service):
    manager = MemberManager(firestore_service)

    with pytest.raises(RecordNotFoundError):
        await manager.update_member(
            "missing", MemberUpdate(username="jdoe", subscription_amount=0)
        )


async def test_update_member_to_taken_username(firestore_service):
    firestore_service.get_document.return_value = Member(
        id="m1", username="jdoe", phone="+256708215305", subscription_amount=0
    )
    firestore_service.exists.return_value = True
    manager = MemberManager(firestore_service)

    with pytest.raises(DuplicateRecordError):
        await manager.update_member(
            "m1", MemberUpdate(username="other", subscription_amount=0)
        )
    firestore_service.update_document.assert_not_awaited()


async def test_update_member_keeping_username(firestore_service):
    firestore_service.get_document.return_value = Member(
        id="m1", username="jdoe", phone="+256708215305", subscription_amount=0
    )
    manager = MemberManager(firestore_service)

    await manager.update_member(
        "m1", MemberUpdate(username="jdoe", subscription_amount=75000)
    )

    firestore_service.exists.assert_not_awaited()
    assert firestore_service.update_document.call_args.kwargs["update_data"] == {
        "username": "jdoe",
        "subscription_amount": 75000,
    }


async def test_add_subscriber_normalizes_phone(firestore_service):
    manager = SubscriberManager(firestore_service)

    await manager.add_subscriber("708215305")

    kwargs = firestore_service.create_document.call_args.kwargs
    assert kwargs["document_data"] == {"phone": "+256708215305"}
    assert kwargs["timestamp_field"] == "subscribed_at"


async def test_add_subscriber_rejects_duplicate(firestore_service):
    firestore_service.exists.return_value = True
    manager = SubscriberManager(firestore_service)

    with pytest.raises(DuplicateRecordError):
        await manager.add_subscriber("0708215305")


async def test_batch_delete_subscribers(firestore_service):
    manager = SubscriberManager(firestore_service)

    assert await manager.batch_delete_subscribers(["s1", "s2"]) == 2


async def test_send_sms_to_all_subscribers(firestore_service):
    firestore_service.query_collection.return_value = [
        Subscriber(id="s1", phone="+256708215305"),
        Subscriber(id="s2", phone="+256772000111"),
        Subscriber(id="s3", phone="0708215305"),
    ]
    manager = SubscriberManager(firestore_service)

    response = await manager.send_sms("Weekend promo: 20% off all day passes")

    # Duplicate numbers are only messaged once
    assert response.recipients == 2
    assert response.segments == 1


async def test_send_sms_to_given_numbers(firestore_service):
    manager = SubscriberManager(firestore_service)

    response = await manager.send_sms("x" * 200, phone_numbers=["0772000111"])

    assert response.recipients == 1
    assert response.segments == 2
    firestore_service.query_collection.assert_not_awaited()


@pytest.mark.parametrize(
    "length, segments", [(1, 1), (160, 1), (161, 2), (306, 2), (307, 3), (918, 6)]
)
def test_count_sms_segments(length, segments):
    assert count_sms_segments("a" * length) == segments


async def test_banners_latest_first(firestore_service):
    manager = BannerManager(firestore_service)

    await manager.get_banners()

    kwargs = firestore_service.query_collection.call_args.kwargs
    assert kwargs["order_by"] == "created_at"
    assert kwargs["descending"]
    assert kwargs["limit"] == CAROUSEL_SIZE


async def test_add_banner(firestore_service):
    manager = BannerManager(firestore_service)

    await manager.add_banner(
        BannerCreate(
            image_url="https://images.example.com/promo.png",
            description="Weekend promo",
            image_hint="city bikes",
        )
    )

    document_data = firestore_service.create_document.call_args.kwargs["document_data"]
    assert document_data["image_url"] == "https://images.example.com/promo.png"


async def test_get_member_by_phone_normalizes(firestore_service):
    member = Member(
        id="m1", username="jdoe", phone="+256708215305", subscription_amount=0
    )
    firestore_service.query_collection.return_value = [member]
    manager = MemberManager(firestore_service)

    assert await manager.get_member_by_phone("0708215305") == member
    assert firestore_service.query_collection.call_args.kwargs["filters"] == [
        ("phone", "==", "+256708215305")
    ]


async def test_update_missing_subscriber(firestore_service):
    manager = SubscriberManager(firestore_service)

    with pytest.raises(RecordNotFoundError):
        await manager.update_subscriber("missing", "0708215305")
    firestore_service.update_document.assert_not_awaited()


async def test_update_subscriber_to_taken_phone(firestore_service):
    firestore_service.get_document.return_value = Subscriber(
        id="s1", phone="+256708215305"
    )
    firestore_service.exists.return_value = True
    manager = SubscriberManager(firestore_service)

    with pytest.raises(DuplicateRecordError):
        await manager.update_subscriber("s1", "0772000111")
    firestore_service.update_document.assert_not_awaited()


async def test_update_subscriber_same_phone(firestore_service):
    firestore_service.get_document.return_value = Subscriber(
        id="s1", phone="+256708215305"
    )
    manager = SubscriberManager(firestore_service)

    await manager.update_subscriber("s1", "0708215305")

    firestore_service.exists.assert_not_awaited()
    assert firestore_service.update_document.call_args.kwargs["update_data"] == {
        "phone": "+256708215305"
    }


def stored_member(password="secret-password"):
    return Member(
        id="m1",
        username="jdoe",
        phone="+256708215305",
        subscription_amount=50000,
        password_hash=pwd_context.hash(password),
    )


async def test_authenticate_member(firestore_service):
    member = stored_member()
    firestore_service.query_collection.return_value = [member]
    manager = MemberManager(firestore_service)

    assert await manager.authenticate("jdoe", "secret-password") == member
    assert firestore_service.query_collection.call_args.kwargs["filters"] == [
        ("username", "==", "jdoe")
    ]


async def test_authenticate_wrong_password(firestore_service):
    firestore_service.query_collection.return_value = [stored_member()]
    manager = MemberManager(firestore_service)

    assert await manager.authenticate("jdoe", "wrong-password") is None


async def test_authenticate_unknown_member(firestore_service):
    manager = MemberManager(firestore_service)

    assert await manager.authenticate("nobody", "secret-password") is None
