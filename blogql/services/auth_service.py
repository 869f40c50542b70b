"""
Auth service — login and HS256 access tokens.

Tokens carry two private claims, ``uid`` and ``email``, plus the
registered ``iat`` / ``exp`` claims.  No session state is stored; a token
is valid until it expires or its user is soft-deleted.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from blogql.config import settings
from blogql.errors import DeletedUser, InvalidToken, NoUser, error_trace
from blogql.models import User
from blogql.schemas import LoginInput
from blogql.services import user_service

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["uid", "email", "iat", "exp"]


def sign_token(payload: dict) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        **payload,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=settings.JWT_ACCESS_EXPIRES)).timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": _REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("The access token has expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidToken() from exc


async def login(db: AsyncSession, data: LoginInput) -> str:
    """Issue an access token for the active user registered under *data.email*."""
    with error_trace("auth_service.login"):
        user = await user_service.read_user_by_option(db, email=data.email)

        if user.is_deleted:
            logger.warning("login refused for deleted user id=%s", user.id)
            raise DeletedUser()

        token = sign_token({"uid": user.id, "email": user.email})

    logger.info("login user id=%s", user.id)
    return token


async def authenticate(db: AsyncSession, token: str) -> User | None:
    """
    Resolve the user behind a bearer *token*.

    Returns None when the token's user no longer exists or has been
    soft-deleted.  A malformed or expired token raises ``InvalidToken``.
    """
    claims = decode_token(token)
    try:
        user = await user_service.read_user_by_option(db, user_id=claims["uid"])
    except NoUser:
        return None
    if user.is_deleted:
        return None
    return user
