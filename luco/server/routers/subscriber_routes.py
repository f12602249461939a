import logging
from traceback import format_exc
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status

from luco.models.members import (
    BatchDeleteRequest,
    BulkSmsRequest,
    BulkSmsResponse,
    SubscribeRequest,
    Subscriber,
)
from luco.server.dependencies import get_subscriber_manager
from luco.server.routers.auth_routes import get_current_admin
from luco.services.members import (
    DuplicateRecordError,
    RecordNotFoundError,
    SubscriberManager,
)
from luco.services.payments.phone import validate_phone

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create a router for SMS subscriber operations
subscriber_router = APIRouter()

Subscribers = Annotated[SubscriberManager, Depends(get_subscriber_manager)]
AdminOnly = [Depends(get_current_admin)]


def _validated_phone(phone: str) -> str:
    try:
        return validate_phone(phone)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@subscriber_router.post("/", status_code=status.HTTP_201_CREATED)
async def subscribe(request: SubscribeRequest, subscriber_manager: Subscribers):
    """Subscribe a phone number to SMS promotions."""
    phone = _validated_phone(request.phone)
    try:
        subscriber_id = await subscriber_manager.add_subscriber(phone)
        return {"id": subscriber_id}
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Error adding subscriber: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to subscribe",
        )


@subscriber_router.get("/", response_model=List[Subscriber], dependencies=AdminOnly)
async def list_subscribers(subscriber_manager: Subscribers):
    try:
        return await subscriber_manager.list_subscribers()
    except Exception as e:
        logger.error(f"Error listing subscribers: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list subscribers",
        )


@subscriber_router.put("/{subscriber_id}", dependencies=AdminOnly)
async def update_subscriber(
    subscriber_id: str, request: SubscribeRequest, subscriber_manager: Subscribers
):
    phone = _validated_phone(request.phone)
    try:
        await subscriber_manager.update_subscriber(subscriber_id, phone)
        return {"id": subscriber_id}
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(
            f"Error updating subscriber {subscriber_id}: {str(e)}\n{format_exc()}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update subscriber",
        )


@subscriber_router.delete(
    "/{subscriber_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=AdminOnly,
)
async def delete_subscriber(subscriber_id: str, subscriber_manager: Subscribers):
    try:
        await subscriber_manager.delete_subscriber(subscriber_id)
    except Exception as e:
        logger.error(
            f"Error deleting subscriber {subscriber_id}: {str(e)}\n{format_exc()}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete subscriber",
        )


@subscriber_router.post("/batch-delete", dependencies=AdminOnly)
async def batch_delete_subscribers(
    request: BatchDeleteRequest, subscriber_manager: Subscribers
):
    try:
        deleted = await subscriber_manager.batch_delete_subscribers(
            request.subscriber_ids
        )
        return {"deleted": deleted}
    except Exception as e:
        logger.error(f"Error deleting subscribers: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete subscribers",
        )


@subscriber_router.post("/sms", response_model=BulkSmsResponse, dependencies=AdminOnly)
async def send_bulk_sms(request: BulkSmsRequest, subscriber_manager: Subscribers):
    """Send a message to the given numbers, or to every subscriber."""
    try:
        return await subscriber_manager.send_sms(request.message, request.phone_numbers)
    except Exception as e:
        logger.error(f"Error sending bulk SMS: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send SMS",
        )
