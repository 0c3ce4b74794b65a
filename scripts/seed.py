"""Database seeder for local development."""
import asyncio
import argparse
import random
import time

from blog.database import engine, async_session, Base
from blog.schemas import PostCreate, UserCreate
from blog.services import post_service, user_service

TAGS = ["python", "fastapi", "postgresql", "redis", "docker", "travel",
        "cooking", "cats", "dogs", "gardening", "music", "books"]

SEED_PASSWORD = "Seed-pass1!"


async def seed(small: bool = False):
    num_users = 5 if small else 25
    num_posts = 30 if small else 1000

    print(f"Seeding: {num_users} users, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            users.append(await user_service.signup(session, UserCreate(
                username=f"user_{i:04d}",
                password=SEED_PASSWORD,
                bio=f"I am test user number {i}.",
            )))
        print(f"  Created {len(users)} users (password: {SEED_PASSWORD})")

        for i in range(num_posts):
            topic = random.choice(TAGS)
            await post_service.create_post(session, PostCreate(
                title=f"Post {i}: notes on {topic}",
                content=f"This is the body of post {i}, mostly about {topic}. " * 5,
                tags=random.sample(TAGS, k=random.randint(1, 4)),
                author_id=random.choice(users)["id"],
            ))
        print(f"  Created {num_posts} posts")

        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (30 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()
