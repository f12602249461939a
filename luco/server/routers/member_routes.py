import logging
from traceback import format_exc
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, status

from luco.models.members import (
    MemberCreate,
    MemberLogin,
    MemberResponse,
    MemberUpdate,
)
from luco.server.dependencies import get_member_manager
from luco.server.routers.auth_routes import get_current_admin
from luco.services.members import (
    DuplicateRecordError,
    MemberManager,
    RecordNotFoundError,
)
from luco.services.payments.phone import validate_phone

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create a router for member operations
member_router = APIRouter()

Members = Annotated[MemberManager, Depends(get_member_manager)]


@member_router.post("/", status_code=status.HTTP_201_CREATED)
async def register_member(member: MemberCreate, member_manager: Members):
    """Sign up a new member."""
    try:
        validate_phone(member.phone)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        member_id = await member_manager.add_member(member)
        return {"id": member_id}
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Error registering member: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register member",
        )


@member_router.post("/login", response_model=MemberResponse)
async def member_login(credentials: MemberLogin, member_manager: Members):
    """Check a member's username and password."""
    try:
        member = await member_manager.authenticate(
            credentials.username, credentials.password
        )
    except Exception as e:
        logger.error(f"Error checking member credentials: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sign in",
        )

    if member is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )
    return MemberResponse(**member.model_dump(exclude={"password_hash"}))


@member_router.get(
    "/",
    response_model=List[MemberResponse],
    dependencies=[Depends(get_current_admin)],
)
async def list_members(member_manager: Members):
    try:
        members = await member_manager.list_members()
        # Password hashes never leave the server
        return [MemberResponse(**m.model_dump(exclude={"password_hash"})) for m in members]
    except Exception as e:
        logger.error(f"Error listing members: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list members",
        )


@member_router.get(
    "/by-phone",
    response_model=MemberResponse,
    dependencies=[Depends(get_current_admin)],
)
async def get_member_by_phone(phone: str, member_manager: Members):
    try:
        member = await member_manager.get_member_by_phone(phone)
    except Exception as e:
        logger.error(f"Error looking up member: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to look up member",
        )

    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Member not found"
        )
    return MemberResponse(**member.model_dump(exclude={"password_hash"}))


@member_router.put("/{member_id}", dependencies=[Depends(get_current_admin)])
async def update_member(member_id: str, update: MemberUpdate, member_manager: Members):
    try:
        await member_manager.update_member(member_id, update)
        return {"id": member_id}
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DuplicateRecordError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating member {member_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update member",
        )


@member_router.delete(
    "/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def delete_member(member_id: str, member_manager: Members):
    try:
        await member_manager.delete_member(member_id)
    except Exception as e:
        logger.error(f"Error deleting member {member_id}: {str(e)}\n{format_exc()}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete member",
        )
