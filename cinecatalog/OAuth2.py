import logging
from datetime import datetime, timezone, timedelta
from typing import Optional

from jose import jwt, JWTError
from pydantic import ValidationError
from fastapi import Depends, Request, Response
from .models import User
from .schemas import TokenResponseData
from .config import settings

logger = logging.getLogger(__name__)

COOKIE_NAME = "access_token"


class NotAuthenticated(Exception):
    """No valid session; the client is sent to the login page."""


class NotAuthorized(Exception):
    """Authenticated, but not allowed to see the page."""

    def __init__(self, user: User):
        super().__init__("You do not have permission to access this page.")
        self.user = user


# Create Access Token
def create_access_token(data: dict):
    payload = data.copy()
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload.update({"exp": expires})
    encoded_jwt = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


def token_for(user: User) -> str:
    return create_access_token(data={"id": str(user.id), "email": user.email, "role": user.role})


# Verify Access Token
def verify_access_token(token: str) -> Optional[TokenResponseData]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.info("Token decoding error: %s", e)
        return None

    id: str = payload.get("id")
    email: str = payload.get("email")
    if not id or not email:
        return None
    try:
        return TokenResponseData(id=id, email=email, role=payload.get("role", "user"))
    except ValidationError:
        return None


def set_session_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token_for(user),
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=COOKIE_NAME)


async def user_from_cookie(request: Request) -> Optional[User]:
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return None

    token_data = verify_access_token(token)
    if token_data is None:
        return None

    return await User.get(token_data.id)


# Get Current User (cookie session)
async def get_current_user(request: Request) -> User:
    user = await user_from_cookie(request)
    if not user:
        raise NotAuthenticated()
    return user


async def get_optional_user(request: Request) -> Optional[User]:
    return await user_from_cookie(request)


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise NotAuthorized(user)
    return user
