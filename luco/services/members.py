"""
Member and Subscriber Managers

This module manages club members and SMS subscribers in Firestore. Usernames
and phone numbers are unique per collection.
"""

import logging
import math
from typing import List, Optional

from passlib.context import CryptContext

from luco.models import MEMBERS_COLLECTION, SUBSCRIBERS_COLLECTION
from luco.models.members import (
    BulkSmsResponse,
    Member,
    MemberCreate,
    MemberUpdate,
    Subscriber,
)
from luco.services.firestore_service import FirestoreService, get_firestore_service
from luco.services.payments.phone import normalize_phone

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Characters per SMS segment for GSM-7 messages longer than a single SMS
SMS_SEGMENT_LENGTH = 153
SMS_SINGLE_LENGTH = 160


class DuplicateRecordError(Exception):
    pass


class RecordNotFoundError(Exception):
    pass


class MemberManager:
    """Manages member documents."""

    def __init__(self, firestore_service: Optional[FirestoreService] = None):
        self.firestore_service = firestore_service or get_firestore_service()

    async def add_member(self, member: MemberCreate) -> str:
        """
        Register a new member.

        Raises:
            DuplicateRecordError: If the username or phone number is already registered
        """
        phone = normalize_phone(member.phone)

        if await self.firestore_service.exists(
            MEMBERS_COLLECTION, "username", member.username
        ):
            raise DuplicateRecordError("This username is already taken.")
        if await self.firestore_service.exists(MEMBERS_COLLECTION, "phone", phone):
            raise DuplicateRecordError("This phone number is already registered.")

        return await self.firestore_service.create_document(
            collection_name=MEMBERS_COLLECTION,
            document_data={
                "username": member.username,
                "phone": phone,
                "subscription_amount": member.subscription_amount,
                "password_hash": pwd_context.hash(member.password),
            },
            timestamp_field="joined_at",
        )

    async def list_members(self) -> List[Member]:
        return await self.firestore_service.query_collection(
            collection_name=MEMBERS_COLLECTION,
            order_by="joined_at",
            descending=True,
            model_class=Member,
        )

    async def get_member_by_phone(self, phone: str) -> Optional[Member]:
        members = await self.firestore_service.query_collection(
            collection_name=MEMBERS_COLLECTION,
            filters=[("phone", "==", normalize_phone(phone))],
            limit=1,
            model_class=Member,
        )
        return members[0] if members else None

    async def authenticate(self, username: str, password: str) -> Optional[Member]:
        """The member with these credentials, or None if they do not match."""
        members = await self.firestore_service.query_collection(
            collection_name=MEMBERS_COLLECTION,
            filters=[("username", "==", username)],
            limit=1,
            model_class=Member,
        )
        member = members[0] if members else None
        if member is None or not member.password_hash:
            return None
        if not pwd_context.verify(password, member.password_hash):
            logger.warning(f"Wrong password for member {username}")
            return None
        return member

    async def update_member(self, member_id: str, update: MemberUpdate) -> None:
        member = await self.firestore_service.get_document(
            MEMBERS_COLLECTION, member_id, model_class=Member
        )
        if member is None:
            raise RecordNotFoundError(f"Member {member_id} not found")

        if update.username != member.username and await self.firestore_service.exists(
            MEMBERS_COLLECTION, "username", update.username
        ):
            raise DuplicateRecordError("This username is already taken.")

        await self.firestore_service.update_document(
            collection_name=MEMBERS_COLLECTION,
            document_id=member_id,
            update_data=update.model_dump(),
        )

    async def delete_member(self, member_id: str) -> None:
        await self.firestore_service.delete_document(MEMBERS_COLLECTION, member_id)


class SubscriberManager:
    """Manages SMS subscriber documents and bulk messages."""

    def __init__(self, firestore_service: Optional[FirestoreService] = None):
        self.firestore_service = firestore_service or get_firestore_service()

    async def add_subscriber(self, phone: str) -> str:
        phone = normalize_phone(phone)
        if await self.firestore_service.exists(SUBSCRIBERS_COLLECTION, "phone", phone):
            raise DuplicateRecordError("This phone number is already subscribed.")

        return await self.firestore_service.create_document(
            collection_name=SUBSCRIBERS_COLLECTION,
            document_data={"phone": phone},
            timestamp_field="subscribed_at",
        )

    async def list_subscribers(self) -> List[Subscriber]:
        return await self.firestore_service.query_collection(
            collection_name=SUBSCRIBERS_COLLECTION,
            order_by="subscribed_at",
            descending=True,
            model_class=Subscriber,
        )

    async def update_subscriber(self, subscriber_id: str, phone: str) -> None:
        """
        Change a subscriber's phone number.

        Raises:
            RecordNotFoundError: If there is no such subscriber
            DuplicateRecordError: If another subscriber already has the number
        """
        subscriber = await self.firestore_service.get_document(
            SUBSCRIBERS_COLLECTION, subscriber_id, model_class=Subscriber
        )
        if subscriber is None:
            raise RecordNotFoundError(f"Subscriber {subscriber_id} not found")

        phone = normalize_phone(phone)
        if phone != subscriber.phone and await self.firestore_service.exists(
            SUBSCRIBERS_COLLECTION, "phone", phone
        ):
            raise DuplicateRecordError("This phone number is already subscribed.")

        await self.firestore_service.update_document(
            collection_name=SUBSCRIBERS_COLLECTION,
            document_id=subscriber_id,
            update_data={"phone": phone},
        )

    async def delete_subscriber(self, subscriber_id: str) -> None:
        await self.firestore_service.delete_document(
            SUBSCRIBERS_COLLECTION, subscriber_id
        )

    async def batch_delete_subscribers(self, subscriber_ids: List[str]) -> int:
        return await self.firestore_service.delete_documents(
            SUBSCRIBERS_COLLECTION, subscriber_ids
        )

    async def send_sms(
        self, message: str, phone_numbers: Optional[List[str]] = None
    ) -> BulkSmsResponse:
        """
        Compose a bulk SMS for the given numbers, or for every subscriber.

        No SMS gateway is wired in yet: the message is logged instead of sent.
        """
        if phone_numbers is None:
            phone_numbers = [s.phone for s in await self.list_subscribers()]

        recipients = sorted({normalize_phone(phone) for phone in phone_numbers})
        segments = count_sms_segments(message)

        logger.info(
            f"Simulating SMS to {len(recipients)} numbers ({segments} segment(s)): "
            f'"{message}"'
        )
        return BulkSmsResponse(
            recipients=len(recipients), segments=segments, message=message
        )


def count_sms_segments(message: str) -> int:
    if len(message) <= SMS_SINGLE_LENGTH:
        return 1
    return math.ceil(len(message) / SMS_SEGMENT_LENGTH)
