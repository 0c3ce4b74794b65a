"""
Search service — free-text search across posts.

A query is matched, case-insensitively and as a literal substring, by
four stages issued one after another:

1. post titles
2. post tags (any element)
3. usernames, whose posts are then fetched
4. post bodies

Stage results are concatenated in that order (each stage in insertion
order) and deduplicated by post id, keeping the first occurrence.  The
stages are separate round-trips, so writes from concurrent requests may
land between them.  Any store error aborts the whole search.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import Post, PostTag, User
from blog.services.post_service import post_to_dict, with_author_and_tags

logger = logging.getLogger(__name__)


def _contains(column, query: str):
    # autoescape turns %, _ and the escape char in *query* into literals.
    return column.icontains(query, autoescape=True)


async def _fetch_posts(db: AsyncSession, *criteria) -> list[Post]:
    q = with_author_and_tags(select(Post).where(*criteria).order_by(Post.id))
    result = await db.execute(q)
    return list(result.unique().scalars().all())


async def posts_by_title(db: AsyncSession, query: str) -> list[Post]:
    return await _fetch_posts(db, _contains(Post.title, query))


async def posts_by_tag(db: AsyncSession, query: str) -> list[Post]:
    return await _fetch_posts(db, Post.tag_rows.any(_contains(PostTag.name, query)))


async def posts_by_author_name(db: AsyncSession, query: str) -> list[Post]:
    result = await db.execute(
        select(User.id).where(_contains(User.username, query)).order_by(User.id)
    )
    user_ids = list(result.scalars().all())
    if not user_ids:
        return []
    return await _fetch_posts(db, Post.author_id.in_(user_ids))


async def posts_by_content(db: AsyncSession, query: str) -> list[Post]:
    return await _fetch_posts(db, _contains(Post.content, query))


def dedupe_posts(posts: list[Post]) -> list[Post]:
    """Drop repeated post ids, preserving first-seen order."""
    unique: dict[int, Post] = {}
    for post in posts:
        unique.setdefault(post.id, post)
    return list(unique.values())


async def search(db: AsyncSession, query: str) -> dict:
    """Run every stage for *query* and return ``{query, search_results}``."""
    matches: list[Post] = []
    for stage in (posts_by_title, posts_by_tag, posts_by_author_name, posts_by_content):
        found = await stage(db, query)
        logger.debug("Search %r: %s matched %d post(s)", query, stage.__name__, len(found))
        matches.extend(found)

    results = dedupe_posts(matches)
    return {"query": query, "search_results": [post_to_dict(p) for p in results]}
