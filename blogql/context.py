"""
Per-request GraphQL context.

Holds the request's ``AsyncSession`` and the authenticated user resolved
from the ``Authorization: Bearer <token>`` header.  graphql-core resolves
sibling fields concurrently, while an ``AsyncSession`` allows one
operation at a time, so resolvers reach the session through
``session()``, which serialises access with a per-request lock.
"""
import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext

from blogql.database import get_db
from blogql.errors import BlogError
from blogql.models import User
from blogql.services import auth_service


class BlogContext(BaseContext):
    def __init__(
        self,
        db: AsyncSession,
        user: User | None = None,
        auth_error: BlogError | None = None,
    ) -> None:
        super().__init__()
        self.db = db
        self.user = user
        self.auth_error = auth_error
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def session(self):
        async with self._lock:
            yield self.db


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def get_context(
    db: AsyncSession = Depends(get_db),
    authorization: str | None = Header(default=None),
) -> BlogContext:
    token = _bearer_token(authorization)
    if token is None:
        return BlogContext(db)
    try:
        user = await auth_service.authenticate(db, token)
    except BlogError as exc:
        return BlogContext(db, auth_error=exc)
    return BlogContext(db, user=user)
