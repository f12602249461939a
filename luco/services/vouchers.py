"""
Voucher Managers

This module manages vouchers and voucher profiles in Firestore, including the
single purchase write made by the purchase flow and the CSV import that turns
a voucher profile into many vouchers.
"""

import csv
import io
import logging
from datetime import datetime
from traceback import format_exc
from typing import Dict, List, Optional

from pydantic import ValidationError

from luco.models import VOUCHER_PROFILES_COLLECTION, VOUCHERS_COLLECTION
from luco.models.shared import VoucherCategory, VoucherStatus
from luco.models.vouchers import (
    BaseVoucherProfile,
    Voucher,
    VoucherCreate,
    VoucherProfile,
)
from luco.services.firestore_service import (
    FirestoreService,
    get_firestore_service,
    utcnow,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# CSV columns that may override the profile template
IMPORT_FIELDS = {
    "code",
    "expiry_date",
    "is_new",
    "title",
    "description",
    "price",
    "discount",
}
REQUIRED_IMPORT_FIELDS = {"code", "expiry_date"}
HEADER_ALIASES = {"expirydate": "expiry_date", "expiry": "expiry_date", "isnew": "is_new"}
TRUTHY_VALUES = {"1", "true", "yes", "y"}


class VoucherNotFoundError(Exception):
    pass


class VoucherImportError(Exception):
    pass


class VoucherManager:
    """Manages voucher documents."""

    def __init__(self, firestore_service: Optional[FirestoreService] = None):
        self.firestore_service = firestore_service or get_firestore_service()

    async def create_voucher(self, voucher: VoucherCreate) -> str:
        return await self.firestore_service.create_document(
            collection_name=VOUCHERS_COLLECTION,
            document_data=voucher.model_dump(mode="json"),
        )

    async def list_vouchers(
        self, category: Optional[VoucherCategory] = None
    ) -> List[Voucher]:
        """List vouchers newest first, optionally restricted to one category."""
        vouchers = await self.firestore_service.query_collection(
            collection_name=VOUCHERS_COLLECTION,
            order_by="created_at",
            descending=True,
            model_class=Voucher,
        )

        # Filtered in Python to avoid a composite index on category + created_at
        if category is not None:
            vouchers = [v for v in vouchers if v.category == category]
        return vouchers

    async def get_voucher(self, voucher_id: str) -> Optional[Voucher]:
        return await self.firestore_service.get_document(
            collection_name=VOUCHERS_COLLECTION,
            document_id=voucher_id,
            model_class=Voucher,
        )

    async def update_voucher(self, voucher_id: str, update_data: Dict) -> None:
        if not update_data:
            return
        if await self.get_voucher(voucher_id) is None:
            raise VoucherNotFoundError(f"Voucher {voucher_id} not found")

        await self.firestore_service.update_document(
            collection_name=VOUCHERS_COLLECTION,
            document_id=voucher_id,
            update_data=update_data,
        )

    async def delete_voucher(self, voucher_id: str) -> None:
        if await self.get_voucher(voucher_id) is None:
            raise VoucherNotFoundError(f"Voucher {voucher_id} not found")

        await self.firestore_service.delete_document(
            collection_name=VOUCHERS_COLLECTION, document_id=voucher_id
        )

    async def mark_purchased(
        self,
        voucher_id: str,
        phone: str,
        purchased_at: Optional[datetime] = None,
    ) -> bool:
        """
        Record a successful purchase.

        The write only applies while the stored status is still active, so a
        voucher is marked purchased at most once.

        Returns:
            True if this call recorded the purchase
        """
        recorded = await self.firestore_service.update_document_if(
            collection_name=VOUCHERS_COLLECTION,
            document_id=voucher_id,
            expected={"status": VoucherStatus.ACTIVE.value},
            update_data={
                "status": VoucherStatus.PURCHASED.value,
                "purchased_by": phone,
                "purchased_at": purchased_at or utcnow(),
            },
        )

        if recorded:
            logger.info(f"Voucher {voucher_id} purchased by {phone}")
        else:
            logger.error(
                f"Voucher {voucher_id} was paid for by {phone} but is no longer active"
            )
        return recorded

    async def find_purchased_by_phone(self, phone: str) -> List[Voucher]:
        vouchers = await self.firestore_service.query_collection(
            collection_name=VOUCHERS_COLLECTION,
            filters=[("purchased_by", "==", phone)],
            model_class=Voucher,
        )
        vouchers.sort(
            key=lambda v: v.purchased_at.timestamp() if v.purchased_at else 0,
            reverse=True,
        )
        return vouchers

    async def import_vouchers_from_csv(
        self,
        profile: VoucherProfile,
        csv_text: str,
        column_mapping: Optional[Dict[str, str]] = None,
    ) -> List[str]:
        """
        Create one voucher per CSV row, using the profile as a template.

        Args:
            profile: Voucher profile providing the default title, price, etc.
            csv_text: CSV content with a header row
            column_mapping: CSV header -> voucher field; headers already named
                after a voucher field do not need an entry

        Returns:
            IDs of the created vouchers

        Raises:
            VoucherImportError: If the CSV is empty or any row is invalid;
                nothing is written in that case
        """
        vouchers = parse_voucher_csv(profile, csv_text, column_mapping)

        batch = self.firestore_service.batch()
        document_ids = []
        for voucher in vouchers:
            doc_ref = self.firestore_service.get_collection_ref(
                VOUCHERS_COLLECTION
            ).document()
            document_data = voucher.model_dump(mode="json")
            document_data["created_at"] = utcnow()
            batch.set(doc_ref, document_data)
            document_ids.append(doc_ref.id)

        try:
            batch.commit()
        except Exception as e:
            logger.error(f"Failed to import vouchers: {str(e)}\n{format_exc()}")
            raise

        logger.info(
            f"Imported {len(document_ids)} vouchers from profile {profile.name}"
        )
        return document_ids


def parse_voucher_csv(
    profile: BaseVoucherProfile,
    csv_text: str,
    column_mapping: Optional[Dict[str, str]] = None,
) -> List[VoucherCreate]:
    """Turn CSV rows into validated vouchers based on a profile template."""
    column_mapping = column_mapping or {}
    reader = csv.DictReader(io.StringIO(csv_text.strip()))

    if not reader.fieldnames:
        raise VoucherImportError("The CSV file is empty")

    # Map each CSV header onto a voucher field
    header_fields = {}
    for header in reader.fieldnames:
        field = column_mapping.get(header)
        if field is None:
            field = header.strip().lower().replace(" ", "_")
            field = HEADER_ALIASES.get(field, field)
        if field in IMPORT_FIELDS:
            header_fields[header] = field

    missing = REQUIRED_IMPORT_FIELDS - set(header_fields.values())
    if missing:
        raise VoucherImportError(
            f"Missing required column(s): {', '.join(sorted(missing))}"
        )

    template = profile.model_dump(exclude={"id", "name", "created_at"})
    vouchers = []
    for row_number, row in enumerate(reader, start=2):
        values = dict(template)
        for header, field in header_fields.items():
            value = (row.get(header) or "").strip()
            if not value:
                continue
            if field == "is_new":
                values[field] = value.lower() in TRUTHY_VALUES
            else:
                values[field] = value

        try:
            vouchers.append(VoucherCreate(**values))
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise VoucherImportError(f"Row {row_number}: {errors}")

    if not vouchers:
        raise VoucherImportError("The CSV file has no voucher rows")
    return vouchers


class VoucherProfileManager:
    """Manages voucher profile documents."""

    def __init__(self, firestore_service: Optional[FirestoreService] = None):
        self.firestore_service = firestore_service or get_firestore_service()

    async def create_profile(self, profile: BaseVoucherProfile) -> str:
        return await self.firestore_service.create_document(
            collection_name=VOUCHER_PROFILES_COLLECTION,
            document_data=profile.model_dump(mode="json"),
        )

    async def list_profiles(self) -> List[VoucherProfile]:
        return await self.firestore_service.query_collection(
            collection_name=VOUCHER_PROFILES_COLLECTION,
            order_by="created_at",
            descending=True,
            model_class=VoucherProfile,
        )

    async def get_profile(self, profile_id: str) -> Optional[VoucherProfile]:
        return await self.firestore_service.get_document(
            collection_name=VOUCHER_PROFILES_COLLECTION,
            document_id=profile_id,
            model_class=VoucherProfile,
        )

    async def update_profile(
        self, profile_id: str, profile: BaseVoucherProfile
    ) -> None:
        if await self.get_profile(profile_id) is None:
            raise VoucherNotFoundError(f"Voucher profile {profile_id} not found")

        await self.firestore_service.update_document(
            collection_name=VOUCHER_PROFILES_COLLECTION,
            document_id=profile_id,
            update_data=profile.model_dump(mode="json"),
        )

    async def delete_profile(self, profile_id: str) -> None:
        if await self.get_profile(profile_id) is None:
            raise VoucherNotFoundError(f"Voucher profile {profile_id} not found")

        await self.firestore_service.delete_document(
            collection_name=VOUCHER_PROFILES_COLLECTION, document_id=profile_id
        )
