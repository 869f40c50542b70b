"""
User service — creation, lookup and soft delete for the User aggregate.

Email uniqueness is enforced by the ``unique_email_for_user`` constraint;
violations are classified here and surface as ``DuplicateEmail``.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blogql.errors import (
    UNIQUE_VIOLATION,
    DuplicateEmail,
    MultipleUser,
    NoOption,
    NoUser,
    Unexpected,
    classify_integrity_error,
    error_trace,
)
from blogql.models import Blog, User
from blogql.schemas import UserCreate
from blogql.stores import user_store

logger = logging.getLogger(__name__)


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """
    Insert a new user.

    The insert runs in a SAVEPOINT so a constraint violation leaves the
    surrounding request transaction usable.
    """
    with error_trace("user_service.create_user"):
        try:
            async with db.begin_nested():
                user = await user_store.insert_user(db, data)
        except IntegrityError as exc:
            if classify_integrity_error(exc) == UNIQUE_VIOLATION:
                raise DuplicateEmail() from exc
            raise Unexpected(exc) from exc
        except SQLAlchemyError as exc:
            raise Unexpected(exc) from exc

        logger.info("user created id=%s", user.id)
        return user


async def read_user_by_option(
    db: AsyncSession,
    user_id: int | None = None,
    email: str | None = None,
) -> User:
    """
    Return the single user matching *user_id* and/or *email*.

    At least one selector is required.  More than one match is an
    integrity violation (id is the primary key, email is unique) and is
    reported as ``MultipleUser`` rather than silently picking one.
    """
    with error_trace("user_service.read_user_by_option"):
        if user_id is None and email is None:
            raise NoOption()

        users = await user_store.find_users(db, user_id=user_id, email=email)
        if not users:
            raise NoUser()
        if len(users) > 1:
            raise MultipleUser()
        return users[0]


async def delete_user(db: AsyncSession, user: User) -> User:
    """Soft-delete *user*; the account can no longer log in."""
    user = await user_store.soft_delete_user(db, user)
    logger.info("user soft-deleted id=%s", user.id)
    return user


async def read_blog(db: AsyncSession, owner_id: int) -> Blog | None:
    return await user_store.find_blog_by_owner(db, owner_id)
