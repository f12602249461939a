"""
Admin authentication.

There is a single admin account configured through the environment. The
admin logs in with the OAuth2 password form and receives a short-lived
bearer JWT; admin-only routes depend on `get_current_admin`.
"""

import logging
from datetime import datetime, timedelta, timezone
from traceback import format_exc
from typing import Annotated, Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext
from pydantic import BaseModel

from config import ADMIN_PASSWORD_HASH, ADMIN_USERNAME, AUTH_JWT_KEY

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create a router for admin authentication
auth_router = APIRouter()

JWT_ALGORITHM = "HS256"
ADMIN_TOKEN_TTL = timedelta(hours=1)

admin_password_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
admin_token_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class Admin(BaseModel):
    username: str


def check_admin_credentials(username: str, password: str) -> Optional[Admin]:
    if not ADMIN_PASSWORD_HASH:
        logger.error("LUCO_ADMIN_PASSWORD_HASH is not set; admin login is disabled")
        return None
    if username != ADMIN_USERNAME:
        return None
    if not admin_password_context.verify(password, ADMIN_PASSWORD_HASH):
        return None
    return Admin(username=username)


def issue_admin_token(admin: Admin, ttl: timedelta = ADMIN_TOKEN_TTL) -> str:
    claims = {"sub": admin.username, "exp": datetime.now(timezone.utc) + ttl}
    return jwt.encode(claims, AUTH_JWT_KEY, algorithm=JWT_ALGORITHM)


async def get_current_admin(
    token: Annotated[str, Depends(admin_token_scheme)],
) -> Admin:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        claims = jwt.decode(token, AUTH_JWT_KEY, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        logger.error(f"Rejected admin token\n{format_exc()}")
        raise unauthorized

    username = claims.get("sub")
    if username != ADMIN_USERNAME:
        logger.error(f"Token subject is not the admin: {username}")
        raise unauthorized
    return Admin(username=username)


@auth_router.post("/token", response_model=Token)
async def admin_login(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
):
    admin = check_admin_credentials(form_data.username, form_data.password)
    if admin is None:
        logger.error(f"Failed admin login attempt for user: {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.info(f"Admin logged in: {admin.username}")
    return Token(access_token=issue_admin_token(admin))


@auth_router.get("/me", response_model=Admin)
async def get_admin_me(admin: Annotated[Admin, Depends(get_current_admin)]):
    """The admin the bearer token belongs to."""
    return admin
