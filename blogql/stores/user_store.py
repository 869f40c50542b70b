"""User store — persistence for the User aggregate (and its Blog)."""
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blogql.models import Blog, User
from blogql.schemas import UserCreate


async def insert_user(db: AsyncSession, data: UserCreate) -> User:
    """Add a user and flush so the database assigns its id."""
    user = User(name=data.name, email=data.email)
    db.add(user)
    await db.flush()
    await db.refresh(user, ["created_at", "updated_at"])
    return user


async def find_users(
    db: AsyncSession,
    user_id: int | None = None,
    email: str | None = None,
) -> list[User]:
    """Return every user matching all given selectors."""
    q = select(User)
    if user_id is not None:
        q = q.where(User.id == user_id)
    if email is not None:
        q = q.where(User.email == email)
    result = await db.execute(q)
    return list(result.scalars().all())


async def soft_delete_user(db: AsyncSession, user: User) -> User:
    """Mark *user* deleted.  The row is kept."""
    now = datetime.now(timezone.utc)
    user.deleted_at = now
    # Explicit value so the server-side onupdate does not expire the attribute.
    user.updated_at = now
    await db.flush()
    return user


async def find_blog_by_owner(db: AsyncSession, owner_id: int) -> Blog | None:
    result = await db.execute(select(Blog).where(Blog.owner_id == owner_id))
    return result.scalar_one_or_none()
