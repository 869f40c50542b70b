"""Development data seeder: users, blogs, posts and hashtags."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from blogql.database import Base, async_session, engine
from blogql.models import Blog, Hashtag, Post, User
from blogql.services.auth_service import sign_token

HASHTAGS = ["python", "graphql", "sqlalchemy", "fastapi", "postgresql", "testing",
            "devops", "security", "travel", "cooking", "books", "music"]


async def seed(small: bool = False):
    num_users = 5 if small else 50
    num_posts = 50 if small else 5000

    print(f"Seeding: {num_users} users, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        hashtags = [Hashtag(name=name) for name in HASHTAGS]
        session.add_all(hashtags)
        await session.flush()
        print(f"  Created {len(hashtags)} hashtags")

        users = []
        for i in range(num_users):
            user = User(name=f"User {i}", email=f"user_{i:04d}@example.com")
            # Every tenth account is soft-deleted so login failures can be tried out.
            if i % 10 == 9:
                user.deleted_at = datetime.now(timezone.utc)
            session.add(user)
            users.append(user)
        await session.flush()

        for user in users[::2]:
            session.add(Blog(name=f"{user.name}'s blog", owner_id=user.id))
        await session.flush()
        print(f"  Created {len(users)} users")

        batch_size = 500
        for batch_start in range(0, num_posts, batch_size):
            batch_end = min(batch_start + batch_size, num_posts)
            for i in range(batch_start, batch_end):
                created = datetime.now(timezone.utc) - timedelta(minutes=random.randint(0, 60 * 24 * 365))
                post = Post(
                    title=f"Post {i}: notes on {random.choice(HASHTAGS)}",
                    content=f"This is the body of post {i}. " * 20,
                    writer_id=random.choice(users).id,
                    created_at=created,
                )
                post.hashtags.extend(random.sample(hashtags, k=random.randint(0, 3)))
                session.add(post)
            await session.flush()
            print(f"  Batch {batch_start}-{batch_end}: posts created")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Posts: {num_posts}")
    print(f"  Hashtags: {len(HASHTAGS)}")
    print(f"\nAccess token for {users[0].email}:\n  {sign_token({'uid': users[0].id, 'email': users[0].email})}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
