"""
Post store — persistence for the Post aggregate.

Design notes
------------
- Reads always eager-load ``Post.hashtags`` with ``selectinload``; the
  relationship is declared ``lazy="noload"`` so a forgotten option shows
  up as an empty list instead of an implicit query on an async session.
- ``update_post`` and ``delete_post`` are bulk statements filtered on
  ``(id, writer_id)`` and return the affected-row count.  They run with
  ``synchronize_session=False``; the service layer owns the in-memory
  state of the post it already loaded.
- Nothing here commits.  The transaction boundary belongs to the caller.
"""
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from blogql.models import Hashtag, Post, post_hashtags
from blogql.schemas import PostCreate


async def resolve_hashtags(db: AsyncSession, names: list[str]) -> list[Hashtag]:
    """
    Return Hashtag ORM instances for each name in *names*, creating any
    that do not yet exist.  All inserts are flushed within the caller's
    transaction.
    """
    hashtags: list[Hashtag] = []
    for name in names:
        result = await db.execute(select(Hashtag).where(Hashtag.name == name))
        hashtag = result.scalar_one_or_none()
        if not hashtag:
            hashtag = Hashtag(name=name)
            db.add(hashtag)
            await db.flush()
        hashtags.append(hashtag)
    return hashtags


async def insert_post(
    db: AsyncSession,
    data: PostCreate,
    writer_id: int,
    hashtag_names: list[str],
) -> Post:
    post = Post(title=data.title, content=data.content, writer_id=writer_id)
    if hashtag_names:
        post.hashtags.extend(await resolve_hashtags(db, hashtag_names))

    db.add(post)
    await db.flush()
    await db.refresh(post, ["created_at", "updated_at"])
    return post


async def find_posts(
    db: AsyncSession,
    post_id: int | None = None,
    writer_id: int | None = None,
    offset: int | None = None,
    limit: int | None = None,
    for_update: bool = False,
) -> list[Post]:
    """
    Return posts matching the given filters, newest first.

    ``id`` breaks ties between posts created within the same clock tick.
    With *for_update* the matched rows are locked until the end of the
    current transaction (ignored by SQLite, which locks the whole file on
    write).
    """
    q = (
        select(Post)
        .options(selectinload(Post.hashtags))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    if post_id is not None:
        q = q.where(Post.id == post_id)
    if writer_id is not None:
        q = q.where(Post.writer_id == writer_id)
    if offset:
        q = q.offset(offset)
    if limit is not None:
        q = q.limit(limit)
    if for_update:
        q = q.with_for_update(of=Post)

    result = await db.execute(q)
    return list(result.scalars().all())


async def update_post(db: AsyncSession, post_id: int, writer_id: int, fields: dict) -> int:
    """Apply *fields* to the post owned by *writer_id*; return affected rows."""
    stmt = (
        update(Post)
        .where(Post.id == post_id, Post.writer_id == writer_id)
        .values(**fields)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount


async def replace_hashtags(db: AsyncSession, post: Post, names: list[str]) -> Post:
    """Replace the hashtag set of *post* (which must have hashtags loaded)."""
    post.hashtags = await resolve_hashtags(db, names)
    await db.flush()
    return post


async def delete_post(db: AsyncSession, post_id: int, writer_id: int) -> int:
    """Delete the post owned by *writer_id* and its hashtag links; return affected posts."""
    owned = select(Post.id).where(Post.id == post_id, Post.writer_id == writer_id)
    await db.execute(delete(post_hashtags).where(post_hashtags.c.post_id.in_(owned)))

    stmt = (
        delete(Post)
        .where(Post.id == post_id, Post.writer_id == writer_id)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount
