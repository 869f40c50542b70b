"""
Regression tests for the transactional guarantees of update and delete.

1. A delete that reports more than one affected row must be rolled back
   and leave the post (and its hashtag links) in place.
2. A rejected update/delete must leave the surrounding session usable.
3. Update and delete statements are filtered on (id, writer_id), so a
   post that changed hands between check and write is not touched.
"""
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from blogql.errors import AmbiguousResult, DeleteFailed, NotWriter, UpdateFailed
from blogql.models import Post, post_hashtags
from blogql.schemas import PostCreate, PostDelete, PostUpdate
from blogql.services import post_service
from blogql.stores import post_store


async def _post_exists(db: AsyncSession, post_id: int) -> bool:
    result = await db.execute(select(func.count()).select_from(Post).where(Post.id == post_id))
    return result.scalar_one() == 1


# ---------------------------------------------------------------------------
# 1. Multi-row delete is rolled back
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_multi_row_delete_is_rolled_back(db_session: AsyncSession, writer, monkeypatch):
    post = await post_service.create_post(
        db_session, writer, PostCreate(title="Survivor", content="C", hashtags=["keep"])
    )
    real_delete = post_store.delete_post

    async def delete_reporting_two_rows(db, post_id, writer_id):
        await real_delete(db, post_id, writer_id)
        return 2

    monkeypatch.setattr(post_store, "delete_post", delete_reporting_two_rows)
    with pytest.raises(AmbiguousResult) as exc_info:
        await post_service.delete_post(db_session, PostDelete(id=post.id), writer)
    assert exc_info.value.code == "ERR_MULTIPLE_DATA"
    monkeypatch.undo()

    assert await _post_exists(db_session, post.id)
    links = (
        await db_session.execute(
            select(func.count()).select_from(post_hashtags).where(post_hashtags.c.post_id == post.id)
        )
    ).scalar_one()
    assert links == 1

    reread = await post_service.read_post(db_session, post.id)
    assert reread.title == "Survivor"


@pytest.mark.asyncio
async def test_single_row_delete_commits(db_session: AsyncSession, writer):
    post = await post_service.create_post(db_session, writer, PostCreate(title="Gone", content="C"))
    assert await post_service.delete_post(db_session, PostDelete(id=post.id), writer) is True
    assert not await _post_exists(db_session, post.id)


# ---------------------------------------------------------------------------
# 2. Session stays usable after a rejected mutation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_session_usable_after_rejected_delete(db_session: AsyncSession, writer, stranger):
    post = await post_service.create_post(db_session, writer, PostCreate(title="Mine", content="C"))
    with pytest.raises(NotWriter):
        await post_service.delete_post(db_session, PostDelete(id=post.id), stranger)

    other = await post_service.create_post(
        db_session, stranger, PostCreate(title="Theirs", content="C")
    )
    titles = [p.title for p in await post_service.read_post_list(db_session, 1, 10)]
    assert sorted(titles) == ["Mine", "Theirs"]
    assert other.writer_id == stranger.id


# ---------------------------------------------------------------------------
# 3. Writes are filtered on (id, writer_id)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_statement_filters_on_writer(db_session: AsyncSession, writer, stranger):
    post = await post_service.create_post(db_session, writer, PostCreate(title="T", content="C"))
    affected = await post_store.update_post(db_session, post.id, stranger.id, {"title": "X"})
    assert affected == 0


@pytest.mark.asyncio
async def test_delete_statement_filters_on_writer(db_session: AsyncSession, writer, stranger):
    post = await post_service.create_post(
        db_session, writer, PostCreate(title="T", content="C", hashtags=["h"])
    )
    affected = await post_store.delete_post(db_session, post.id, stranger.id)
    assert affected == 0
    assert await _post_exists(db_session, post.id)
    links = (
        await db_session.execute(
            select(func.count()).select_from(post_hashtags).where(post_hashtags.c.post_id == post.id)
        )
    ).scalar_one()
    assert links == 1


@pytest.mark.asyncio
async def test_ownership_change_between_check_and_write(
    db_session: AsyncSession, writer, stranger, monkeypatch
):
    """
    Simulate the post changing hands after the ownership check: the write
    is filtered on the checked writer, so nothing is updated or deleted.
    """
    post = await post_service.create_post(db_session, writer, PostCreate(title="T", content="C"))
    real_update = post_store.update_post
    real_delete = post_store.delete_post

    async def reassign_then_update(db, post_id, writer_id, fields):
        await real_update(db, post_id, writer_id, {"writer_id": stranger.id})
        return await real_update(db, post_id, writer_id, fields)

    async def reassign_then_delete(db, post_id, writer_id):
        await real_update(db, post_id, writer_id, {"writer_id": stranger.id})
        return await real_delete(db, post_id, writer_id)

    monkeypatch.setattr(post_store, "update_post", reassign_then_update)
    with pytest.raises(UpdateFailed):
        await post_service.update_post(db_session, PostUpdate(id=post.id, title="X"), writer)

    monkeypatch.setattr(post_store, "delete_post", reassign_then_delete)
    with pytest.raises(DeleteFailed):
        await post_service.delete_post(db_session, PostDelete(id=post.id), writer)

    # Both savepoints were rolled back, reassignment included.
    row = (
        await db_session.execute(select(Post.title, Post.writer_id).where(Post.id == post.id))
    ).one()
    assert tuple(row) == ("T", writer.id)
