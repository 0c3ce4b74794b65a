"""
Post service — lifecycle and listing reads for the Post aggregate.

Design notes
------------
- The recent and full listings go through the cache-aside pattern
  (Redis → fallback to DB).  Every write purges all listing keys.
- Author and tags are eager-loaded explicitly (``joinedload`` for the
  many-to-one author, ``selectinload`` for the ordered tag rows); all
  relationships raise on lazy SQL loads.
- A post whose author no longer resolves is serialised with the
  ``UNKNOWN_AUTHOR`` placeholder instead of failing.
- Update and delete perform the ownership check only when
  ``settings.ENFORCE_POST_OWNERSHIP`` is on (or when overridden by the
  caller).
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from blog.cache import cache
from blog.config import settings
from blog.dates import get_date
from blog.models import Post, PostTag
from blog.schemas import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "unknown author"


class NotPostAuthor(Exception):
    """The acting user is not the author of the post it tried to modify."""

    def __init__(self, post_id: int, user_id: int) -> None:
        super().__init__(f"User {user_id} is not the author of post {post_id}")
        self.post_id = post_id
        self.user_id = user_id


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _serialize_author(post: Post) -> dict:
    if post.author is None:
        return {"id": None, "username": UNKNOWN_AUTHOR}
    return {"id": post.author.id, "username": post.author.username}


def post_to_dict(post: Post) -> dict:
    """Serialise a Post ORM instance with its author and tags loaded."""
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "tags": post.tags,
        "image": post.image,
        "date": post.date,
        "author_id": post.author_id,
        "author": _serialize_author(post),
    }


def _tag_rows(tags: list[str]) -> list[PostTag]:
    return [PostTag(position=i, name=name) for i, name in enumerate(tags)]


def with_author_and_tags(stmt):
    """Attach the eager-load options every serialised post needs."""
    return stmt.options(joinedload(Post.author), selectinload(Post.tag_rows))


async def _load_post(db: AsyncSession, post_id: int) -> Post | None:
    q = (
        with_author_and_tags(select(Post).where(Post.id == post_id))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


def _check_owner(post: Post, user_id: int, enforce: bool | None) -> None:
    if enforce is None:
        enforce = settings.ENFORCE_POST_OWNERSHIP
    if enforce and post.author_id != user_id:
        logger.warning("User %s denied modifying post %s", user_id, post.id)
        raise NotPostAuthor(post.id, user_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def _list_posts(db: AsyncSession, limit: int | None) -> list[dict]:
    cache_key = cache.list_key("all" if limit is None else f"recent:{limit}")
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    q = with_author_and_tags(select(Post).order_by(desc(Post.date), desc(Post.id)))
    if limit is not None:
        q = q.limit(limit)
    result = await db.execute(q)
    posts = [post_to_dict(p) for p in result.unique().scalars().all()]

    await cache.set(cache_key, posts, ttl=settings.CACHE_TTL_LIST)
    return posts


async def get_recent_posts(db: AsyncSession, limit: int | None = None) -> list[dict]:
    """Return the newest posts (``settings.RECENT_POSTS_LIMIT`` by default), newest first."""
    if limit is None:
        limit = settings.RECENT_POSTS_LIMIT
    return await _list_posts(db, limit)


async def get_all_posts(db: AsyncSession) -> list[dict]:
    """Return every post, newest first."""
    return await _list_posts(db, None)


async def get_post(db: AsyncSession, post_id: int) -> dict | None:
    """Return the post with *post_id*, or None when it does not exist."""
    post = await _load_post(db, post_id)
    return post_to_dict(post) if post is not None else None


async def get_posts_by_author(db: AsyncSession, user_id: int) -> list[dict]:
    """Return all posts authored by *user_id* in creation order."""
    q = with_author_and_tags(
        select(Post).where(Post.author_id == user_id).order_by(Post.id)
    )
    result = await db.execute(q)
    return [post_to_dict(p) for p in result.unique().scalars().all()]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

async def create_post(db: AsyncSession, data: PostCreate) -> dict:
    """Create a post stamped with the current date and return it."""
    post = Post(
        title=data.title,
        content=data.content,
        image=data.image,
        date=get_date(),
        author_id=data.author_id,
    )
    post.tag_rows = _tag_rows(data.tags)
    db.add(post)
    await db.flush()

    await cache.invalidate_posts()
    logger.info("User %s created post %s", data.author_id, post.id)
    created = await _load_post(db, post.id)
    return post_to_dict(created)


async def update_post(
    db: AsyncSession,
    post_id: int,
    data: PostUpdate,
    user_id: int,
    enforce_ownership: bool | None = None,
) -> dict | None:
    """
    Overwrite title, content and tags of *post_id* and re-stamp its date.

    The stored image is replaced only when ``data.image`` is set.
    Returns None when the post does not exist; raises ``NotPostAuthor``
    when ownership is enforced and *user_id* is not the author.
    """
    post = await _load_post(db, post_id)
    if post is None:
        return None
    _check_owner(post, user_id, enforce_ownership)

    post.title = data.title
    post.content = data.content
    post.tag_rows = _tag_rows(data.tags)
    if data.image is not None:
        post.image = data.image
    post.date = get_date()

    await db.flush()
    await cache.invalidate_posts()
    logger.info("User %s updated post %s", user_id, post_id)
    return post_to_dict(post)


async def delete_post(
    db: AsyncSession,
    post_id: int,
    user_id: int,
    enforce_ownership: bool | None = None,
) -> bool:
    """
    Delete *post_id*.

    Returns True when a post was removed and False when none existed.
    Raises ``NotPostAuthor`` when ownership is enforced and *user_id* is
    not the author.
    """
    q = select(Post).where(Post.id == post_id).options(selectinload(Post.tag_rows))
    result = await db.execute(q)
    post = result.scalar_one_or_none()
    if post is None:
        return False
    _check_owner(post, user_id, enforce_ownership)

    await db.delete(post)
    await db.flush()
    await cache.invalidate_posts()
    logger.info("User %s deleted post %s", user_id, post_id)
    return True
