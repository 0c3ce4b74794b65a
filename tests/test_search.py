"""
Search tests — stage precedence (title → tags → author → content),
identity-based dedup, and literal case-insensitive matching.

Data is inserted directly through the service layer so each test can
control authorship without juggling sessions.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from blog.models import User
from blog.schemas import PostCreate
from blog.services import post_service, search_service


async def _user(db: AsyncSession, username: str) -> User:
    user = User(username=username, password_hash="!")
    db.add(user)
    await db.flush()
    return user


async def _post(db: AsyncSession, author: User, title: str, content: str = "plain text",
                tags: list[str] | None = None) -> int:
    created = await post_service.create_post(db, PostCreate(
        title=title, content=content, tags=tags or ["misc"], author_id=author.id,
    ))
    return created["id"]


def _ids(result: dict) -> list[int]:
    return [p["id"] for p in result["search_results"]]


# ---------------------------------------------------------------------------
# Stage precedence
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cat_matches_every_stage_once_in_stage_order(db_session: AsyncSession):
    alice = await _user(db_session, "alice")
    catlover = await _user(db_session, "catlover")

    # Inserted in reverse stage order so insertion order cannot explain the result.
    by_content = await _post(db_session, alice, "String tricks", content="How to concatenate lists")
    by_author = await _post(db_session, catlover, "Weekend plans")
    by_tag = await _post(db_session, alice, "My pets", tags=["cat", "pets"])
    by_title = await _post(db_session, alice, "Cats and Dogs")
    await _post(db_session, alice, "Unrelated", content="nothing to see")

    result = await search_service.search(db_session, "cat")
    assert result["query"] == "cat"
    assert _ids(result) == [by_title, by_tag, by_author, by_content]


@pytest.mark.asyncio
async def test_post_matching_several_stages_keeps_first_position(db_session: AsyncSession):
    alice = await _user(db_session, "alice")
    catlover = await _user(db_session, "catlover")

    tagged = await _post(db_session, alice, "Tagged only", tags=["CAT"])
    everything = await _post(db_session, catlover, "Cat nap", content="concatenate", tags=["cat"])
    titled = await _post(db_session, alice, "Bobcat sightings")

    result = await search_service.search(db_session, "cat")
    ids = _ids(result)
    assert ids == [everything, titled, tagged]
    assert len(ids) == len(set(ids))


@pytest.mark.asyncio
async def test_search_populates_author(db_session: AsyncSession):
    writer = await _user(db_session, "writer")
    await _post(db_session, writer, "Findable")

    [hit] = (await search_service.search(db_session, "findable"))["search_results"]
    assert hit["author"] == {"id": writer.id, "username": "writer"}


# ---------------------------------------------------------------------------
# Matching rules
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_is_case_insensitive(db_session: AsyncSession):
    user = await _user(db_session, "someone")
    post_id = await _post(db_session, user, "PyThOn Tips")

    assert _ids(await search_service.search(db_session, "python")) == [post_id]
    assert _ids(await search_service.search(db_session, "TIPS")) == [post_id]


@pytest.mark.asyncio
@pytest.mark.parametrize("query", [".*", "a+b", "(", "[x]"])
async def test_regex_metacharacters_match_literally(db_session: AsyncSession, query: str):
    user = await _user(db_session, "someone")
    literal = await _post(db_session, user, f"Title with {query} inside")
    await _post(db_session, user, "Ordinary title", content="ab aab xyz")

    assert _ids(await search_service.search(db_session, query)) == [literal]


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["%", "_"])
async def test_like_wildcards_match_literally(db_session: AsyncSession, query: str):
    user = await _user(db_session, "someone")
    literal = await _post(db_session, user, f"100{query} sure")
    await _post(db_session, user, "Nothing special")

    assert _ids(await search_service.search(db_session, query)) == [literal]


@pytest.mark.asyncio
async def test_no_match_returns_empty(db_session: AsyncSession):
    user = await _user(db_session, "someone")
    await _post(db_session, user, "Gardening")

    result = await search_service.search(db_session, "zebra")
    assert result == {"query": "zebra", "search_results": []}


@pytest.mark.asyncio
async def test_empty_query_matches_every_post_once(db_session: AsyncSession):
    user = await _user(db_session, "someone")
    first = await _post(db_session, user, "One")
    second = await _post(db_session, user, "Two")

    assert _ids(await search_service.search(db_session, "")) == [first, second]


def test_dedupe_posts_keeps_first_occurrence():
    class _P:
        def __init__(self, id):
            self.id = id

    a, b, c = _P(1), _P(2), _P(3)
    a_again = _P(1)
    result = search_service.dedupe_posts([b, a, b, c, a_again])
    assert [p.id for p in result] == [2, 1, 3]
    assert result[1] is a


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_endpoint(async_client: AsyncClient):
    await async_client.post("/signup", data={"username": "catlover", "password": "Abc123!"})
    await async_client.post("/posts", data={"title": "Morning", "content": "coffee", "tags": "daily"})
    await async_client.post("/posts", data={"title": "Cat pictures", "content": "meow", "tags": "cat"})

    resp = await async_client.get("/search", params={"query": "CAT"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["query"] == "CAT"
    assert [p["title"] for p in data["search_results"]] == ["Cat pictures", "Morning"]


@pytest.mark.asyncio
async def test_search_endpoint_is_public(async_client: AsyncClient):
    resp = await async_client.get("/search", params={"query": "anything"})
    assert resp.status_code == 200
    assert resp.json()["search_results"] == []


@pytest.mark.asyncio
async def test_search_endpoint_requires_query(async_client: AsyncClient):
    resp = await async_client.get("/search")
    assert resp.status_code == 422
