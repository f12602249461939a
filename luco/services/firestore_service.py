"""
Firestore access for the voucher store.

Wraps the Firebase Admin client with the handful of operations the managers
need. Documents come back as the Pydantic model registered for their
collection in COLLECTION_MODELS, with the document ID as `id`. Storage errors
are logged and re-raised; callers decide how to report them.
"""

import logging
import uuid
from datetime import datetime, timezone
from traceback import format_exc
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import firebase_admin
from firebase_admin import firestore
from google.cloud.firestore import Client, DocumentReference, Query, transactional

from config import FIRESTORE_DATABASE
from luco.models import COLLECTION_MODELS
from luco.models.shared import FirestoreBaseModel

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=FirestoreBaseModel)

# (field, operator, value), e.g. ("purchased_by", "==", "+256708215305")
Filter = Tuple[str, str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FirestoreService:
    """Thin async facade over one Firestore database."""

    def __init__(self, database_name: str = "(default)"):
        self.database_name = database_name
        self._client: Optional[Client] = None

    @property
    def client(self) -> Client:
        # Connect on first use so importing the app never needs credentials
        if self._client is None:
            try:
                app = firebase_admin.initialize_app()
            except ValueError:
                app = firebase_admin.get_app()
            self._client = firestore.client(app, database=self.database_name)
            logger.info(f"Connected to Firestore database {self.database_name}")
        return self._client

    def get_collection_ref(self, collection_name: str):
        return self.client.collection(collection_name)

    def get_document_ref(
        self, collection_name: str, document_id: str
    ) -> DocumentReference:
        return self.get_collection_ref(collection_name).document(document_id)

    def batch(self):
        return self.client.batch()

    @staticmethod
    def _to_model(
        collection_name: str,
        document_id: str,
        data: Dict[str, Any],
        model_class: Optional[Type[ModelT]] = None,
    ):
        model_class = model_class or COLLECTION_MODELS.get(collection_name)
        data = {**data, "id": document_id}
        return model_class(**data) if model_class else data

    async def create_document(
        self,
        collection_name: str,
        document_data: Dict[str, Any],
        document_id: Optional[str] = None,
        timestamp_field: str = "created_at",
    ) -> str:
        """
        Store a new document, stamping `timestamp_field` with the current time.

        Returns:
            The document ID (a new UUID unless `document_id` is given)
        """
        document_id = document_id or str(uuid.uuid4())
        document_data.setdefault(timestamp_field, utcnow())

        try:
            self.get_document_ref(collection_name, document_id).set(document_data)
        except Exception as e:
            logger.error(
                f"Failed to create document in {collection_name}: {str(e)}\n{format_exc()}"
            )
            raise

        logger.info(f"Created {collection_name}/{document_id}")
        return document_id

    async def get_document(
        self,
        collection_name: str,
        document_id: str,
        model_class: Optional[Type[ModelT]] = None,
    ) -> Optional[ModelT]:
        try:
            snapshot = self.get_document_ref(collection_name, document_id).get()
        except Exception as e:
            logger.error(
                f"Failed to read {collection_name}/{document_id}: {str(e)}\n{format_exc()}"
            )
            raise

        if not snapshot.exists:
            return None
        return self._to_model(
            collection_name, snapshot.id, snapshot.to_dict(), model_class
        )

    async def update_document(
        self, collection_name: str, document_id: str, update_data: Dict[str, Any]
    ) -> bool:
        try:
            self.get_document_ref(collection_name, document_id).update(update_data)
        except Exception as e:
            logger.error(
                f"Failed to update {collection_name}/{document_id}: {str(e)}\n{format_exc()}"
            )
            raise

        logger.info(f"Updated {collection_name}/{document_id}: {sorted(update_data)}")
        return True

    async def update_document_if(
        self,
        collection_name: str,
        document_id: str,
        expected: Dict[str, Any],
        update_data: Dict[str, Any],
    ) -> bool:
        """
        Apply `update_data` only while the stored fields still equal `expected`.

        Read and write share one transaction, so of two concurrent callers with
        the same precondition at most one succeeds.

        Returns:
            Whether the update was applied; False if the document is missing or
            no longer matches
        """
        doc_ref = self.get_document_ref(collection_name, document_id)

        @transactional
        def apply_if_unchanged(transaction) -> bool:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                return False

            current = snapshot.to_dict()
            if any(current.get(field) != value for field, value in expected.items()):
                return False

            transaction.update(doc_ref, update_data)
            return True

        try:
            applied = apply_if_unchanged(self.client.transaction())
        except Exception as e:
            logger.error(
                f"Conditional update of {collection_name}/{document_id} failed: "
                f"{str(e)}\n{format_exc()}"
            )
            raise

        if not applied:
            logger.warning(
                f"{collection_name}/{document_id} did not match {expected}; not updated"
            )
        return applied

    async def delete_document(self, collection_name: str, document_id: str) -> bool:
        try:
            self.get_document_ref(collection_name, document_id).delete()
        except Exception as e:
            logger.error(
                f"Failed to delete {collection_name}/{document_id}: {str(e)}\n{format_exc()}"
            )
            raise

        logger.info(f"Deleted {collection_name}/{document_id}")
        return True

    async def delete_documents(
        self, collection_name: str, document_ids: List[str]
    ) -> int:
        """Delete several documents in one batch; returns how many were requested."""
        batch = self.batch()
        for document_id in document_ids:
            batch.delete(self.get_document_ref(collection_name, document_id))

        try:
            batch.commit()
        except Exception as e:
            logger.error(
                f"Batch delete from {collection_name} failed: {str(e)}\n{format_exc()}"
            )
            raise

        logger.info(f"Deleted {len(document_ids)} documents from {collection_name}")
        return len(document_ids)

    async def query_collection(
        self,
        collection_name: str,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        model_class: Optional[Type[ModelT]] = None,
    ) -> List[ModelT]:
        """
        Run a query over one collection.

        Args:
            collection_name: Collection to query
            filters: Equality/range filters applied in order
            order_by: Field to sort on
            descending: Sort newest/largest first
            limit: Maximum number of documents
            offset: Number of documents to skip
            model_class: Model to build; defaults to the collection's model
        """
        query = self.get_collection_ref(collection_name)
        for field, operator, value in filters or []:
            query = query.where(field, operator, value)
        if order_by:
            query = query.order_by(
                order_by, direction=Query.DESCENDING if descending else Query.ASCENDING
            )
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        try:
            return [
                self._to_model(collection_name, doc.id, doc.to_dict(), model_class)
                for doc in query.stream()
            ]
        except Exception as e:
            logger.error(
                f"Query on {collection_name} failed: {str(e)}\n{format_exc()}"
            )
            raise

    async def exists(self, collection_name: str, field: str, value: Any) -> bool:
        """Whether any document in the collection has `field == value`."""
        query = self.get_collection_ref(collection_name).where(field, "==", value)
        return any(True for _ in query.limit(1).stream())


_firestore_service: Optional[FirestoreService] = None


def get_firestore_service() -> FirestoreService:
    """Process-wide FirestoreService for the configured database."""
    global _firestore_service
    if _firestore_service is None:
        _firestore_service = FirestoreService(FIRESTORE_DATABASE)
    return _firestore_service
