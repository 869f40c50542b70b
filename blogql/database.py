import logging

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from blogql.config import settings
from blogql.middleware import install_query_counter

logger = logging.getLogger(__name__)

# Module-level engine; tests override get_db with their own engine.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
)

install_query_counter(engine)

# expire_on_commit=False: GraphQL types are built from ORM instances after
# the resolver returns, when lazy refreshes are no longer possible.
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    """
    Request-scoped session.  Committed when the request completes,
    rolled back if the request raised.  Mutations that must be atomic on
    their own open a SAVEPOINT inside this transaction.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.warning("rolling back request session")
            await session.rollback()
            raise
