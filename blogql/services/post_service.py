"""
Post service — business rules for the Post aggregate.

Design notes
------------
- A post moves ``Created -> (Updated)* -> Deleted``.  Every transition
  after creation goes through ``_get_editable_post``, the only ownership
  gate, before any statement touches the row.
- Update and delete each run inside one SAVEPOINT: the ownership check
  (row locked ``FOR UPDATE`` where the backend supports it), the write,
  and the commit/rollback decision.  A concurrent writer cannot slip in
  between the check and the write.
- The write statements are themselves filtered on ``(id, writer_id)``,
  so the affected-row count is the single source of truth for success.
- A delete that reports more than one affected row is rolled back and
  surfaces as ``AmbiguousResult``; only exactly one row is committed.
- Read-by-id treats more than one row as an integrity error
  (``AmbiguousResult``), never as "not found".
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from blogql.errors import (
    NOT_NULL_VIOLATION,
    AmbiguousResult,
    DeleteFailed,
    InvalidArgument,
    MissingRequiredField,
    NotFound,
    NotWriter,
    UpdateFailed,
    classify_integrity_error,
    error_trace,
)
from blogql.models import Post, User
from blogql.schemas import PostCreate, PostDelete, PostUpdate
from blogql.stores import post_store

logger = logging.getLogger(__name__)


def unique_hashtags(names: list[str] | None) -> list[str]:
    """Collapse *names* to a duplicate-free list (first occurrence wins)."""
    if not names:
        return []
    return list(dict.fromkeys(names))


def _single_post(posts: list[Post]) -> Post:
    if not posts:
        raise NotFound()
    if len(posts) > 1:
        raise AmbiguousResult()
    return posts[0]


async def _get_editable_post(
    db: AsyncSession,
    post_id: int,
    editor_id: int,
    for_update: bool = True,
) -> Post:
    """Return the post *editor_id* may modify, or raise."""
    post = _single_post(await post_store.find_posts(db, post_id=post_id, for_update=for_update))
    if post.writer_id != editor_id:
        logger.warning(
            "user id=%s tried to modify post id=%s owned by user id=%s",
            editor_id,
            post_id,
            post.writer_id,
        )
        raise NotWriter()
    return post


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, user: User, data: PostCreate) -> Post:
    """Write a new post as *user*."""
    with error_trace("post_service.create_post"):
        try:
            async with db.begin_nested():
                post = await post_store.insert_post(
                    db, data, writer_id=user.id, hashtag_names=unique_hashtags(data.hashtags)
                )
        except IntegrityError as exc:
            if classify_integrity_error(exc) == NOT_NULL_VIOLATION:
                raise MissingRequiredField() from exc
            raise

    logger.info("post created id=%s writer=%s", post.id, user.id)
    return post


async def read_post(db: AsyncSession, post_id: int) -> Post:
    with error_trace("post_service.read_post"):
        return _single_post(await post_store.find_posts(db, post_id=post_id))


async def read_post_list(db: AsyncSession, page_number: int, limit: int) -> list[Post]:
    """
    Return page *page_number* (1-based) of the newest-first feed.

    Equivalent to the slice ``[limit * (page_number - 1), limit * page_number)``
    of all posts ordered by creation time, most recent first.
    """
    with error_trace("post_service.read_post_list"):
        if page_number < 1:
            raise InvalidArgument("pageNumber must be 1 or greater.")
        if limit < 1:
            raise InvalidArgument("limit must be 1 or greater.")

        return await post_store.find_posts(
            db, offset=limit * (page_number - 1), limit=limit
        )


async def read_posts_by_writer(db: AsyncSession, writer_id: int) -> list[Post]:
    return await post_store.find_posts(db, writer_id=writer_id)


async def update_post(db: AsyncSession, data: PostUpdate, writer: User) -> Post:
    """
    Partially update a post owned by *writer*.

    Returns the stored post with only the fields present in *data* merged
    in; absent fields keep their stored value.  A present ``hashtags``
    list replaces the post's hashtag set.
    """
    with error_trace("post_service.update_post"):
        async with db.begin_nested():
            post = await _get_editable_post(db, data.id, writer.id)

            changes = data.changes()
            now = datetime.now(timezone.utc)
            affected = await post_store.update_post(
                db, post.id, writer.id, {**changes, "updated_at": now}
            )
            if affected == 0:
                raise UpdateFailed()

            for field, value in {**changes, "updated_at": now}.items():
                set_committed_value(post, field, value)

            if data.hashtags is not None:
                await post_store.replace_hashtags(db, post, unique_hashtags(data.hashtags))

    logger.info("post updated id=%s fields=%s", post.id, sorted(changes))
    return post


async def delete_post(db: AsyncSession, data: PostDelete, writer: User) -> bool:
    """
    Delete a post owned by *writer*.

    Exactly one affected row releases the SAVEPOINT and returns True.  Zero
    rows raises ``DeleteFailed``; more than one rolls the SAVEPOINT back and
    raises ``AmbiguousResult``, leaving every row in place.
    """
    with error_trace("post_service.delete_post"):
        async with db.begin_nested():
            post = await _get_editable_post(db, data.id, writer.id)

            affected = await post_store.delete_post(db, post.id, writer.id)
            if affected == 0:
                raise DeleteFailed()
            if affected > 1:
                logger.error(
                    "delete of post id=%s affected %d rows, rolling back", post.id, affected
                )
                raise AmbiguousResult("Delete matched more than one post and was rolled back.")

    db.expunge(post)
    logger.info("post deleted id=%s writer=%s", data.id, writer.id)
    return True
