from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blog.database import get_db
from blog.dependencies import CurrentSession
from blog.routers.auth import PROFILE_PATH
from blog.schemas import BlogResponse, HomeResponse, PostCreate, PostUpdate, PostView, split_tags
from blog.services import post_service
from blog.uploads import discard_upload, save_upload

router = APIRouter(tags=["posts"])

BLOG_PATH = "/blog"

# Largest value of the integer primary key column.
MAX_POST_ID = 2**31 - 1


def _to_profile() -> RedirectResponse:
    return RedirectResponse(PROFILE_PATH, status_code=303)


def _parse_post_id(raw: str) -> int | None:
    """Return *raw* as a post id, or None when it cannot name any post."""
    try:
        post_id = int(raw)
    except ValueError:
        return None
    return post_id if 0 < post_id <= MAX_POST_ID else None


@router.get("/", response_model=HomeResponse)
async def home(db: AsyncSession = Depends(get_db)):
    return {"latest_posts": await post_service.get_recent_posts(db)}


@router.get(BLOG_PATH, response_model=BlogResponse)
async def blog(db: AsyncSession = Depends(get_db)):
    return {"blog_posts": await post_service.get_all_posts(db)}


@router.post("/posts")
async def create_post(
    session: CurrentSession,
    title: Annotated[str, Form(max_length=300)],
    content: Annotated[str, Form()],
    tags: Annotated[str, Form()],
    image: Annotated[UploadFile | None, File()] = None,
    db: AsyncSession = Depends(get_db),
):
    data = PostCreate(
        title=title,
        content=content,
        tags=split_tags(tags),
        image=await save_upload(image),
        author_id=session.user_id,
    )
    await post_service.create_post(db, data)
    return _to_profile()


@router.get("/posts/{post_id}", response_model=PostView)
async def get_post(post_id: str, db: AsyncSession = Depends(get_db)):
    parsed = _parse_post_id(post_id)
    post = await post_service.get_post(db, parsed) if parsed is not None else None
    if post is None:
        return RedirectResponse(BLOG_PATH, status_code=303)
    return {"post": post}


@router.put("/posts/{post_id}")
async def update_post(
    post_id: str,
    session: CurrentSession,
    title: Annotated[str, Form(max_length=300)],
    content: Annotated[str, Form()],
    tags: Annotated[str, Form()],
    image: Annotated[UploadFile | None, File()] = None,
    db: AsyncSession = Depends(get_db),
):
    parsed = _parse_post_id(post_id)
    # A missing post lands on the profile too.
    if parsed is None:
        return _to_profile()

    data = PostUpdate(
        title=title,
        content=content,
        tags=split_tags(tags),
        image=await save_upload(image),
    )
    try:
        updated = await post_service.update_post(db, parsed, data, session.user_id)
    except post_service.NotPostAuthor:
        await discard_upload(data.image)
        raise HTTPException(status_code=403, detail="Only the author may modify this post")
    if updated is None:
        await discard_upload(data.image)
    return _to_profile()


@router.delete("/posts/{post_id}")
async def delete_post(post_id: str, session: CurrentSession, db: AsyncSession = Depends(get_db)):
    parsed = _parse_post_id(post_id)
    if parsed is None:
        return _to_profile()
    try:
        await post_service.delete_post(db, parsed, session.user_id)
    except post_service.NotPostAuthor:
        raise HTTPException(status_code=403, detail="Only the author may modify this post")
    return _to_profile()
