import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from blog.config import settings
from blog.database import get_db
from blog.dependencies import LOGIN_PATH, CurrentSession, OptionalSession
from blog.schemas import FormError, ProfileResponse, UserCreate
from blog.services import post_service, user_service
from blog.sessions import Session, session_store
from blog.uploads import discard_upload, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

PROFILE_PATH = "/profile"


def _start_session(previous: Session | None, user_id: int) -> RedirectResponse:
    """Replace any existing session with a fresh one and redirect to the profile."""
    if previous is not None:
        session_store.destroy(previous.session_id)
    session = session_store.create(user_id)
    response = RedirectResponse(PROFILE_PATH, status_code=303)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_id,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return response


def _form_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(FormError(error_message=message).model_dump(), status_code=status_code)


@router.post("/signup", responses={400: {"model": FormError}, 409: {"model": FormError}})
async def signup(
    session: OptionalSession,
    username: Annotated[str, Form(min_length=1, max_length=100)],
    password: Annotated[str, Form()],
    bio: Annotated[str | None, Form()] = None,
    profile_picture: Annotated[UploadFile | None, File()] = None,
    db: AsyncSession = Depends(get_db),
):
    data = UserCreate(username=username, password=password, bio=bio)
    try:
        user_service.check_password_policy(data.password)
    except user_service.SignupRejected as exc:
        return _form_error(exc.message, exc.status_code)

    data.profile_picture = await save_upload(profile_picture)
    try:
        user = await user_service.signup(db, data)
    except user_service.SignupRejected as exc:
        await discard_upload(data.profile_picture)
        return _form_error(exc.message, exc.status_code)
    return _start_session(session, user["id"])


@router.post("/login", responses={401: {"model": FormError}})
async def login(
    session: OptionalSession,
    username: Annotated[str, Form()],
    password: Annotated[str, Form()],
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await user_service.login(db, username, password)
    except user_service.AuthenticationFailed as exc:
        return _form_error(exc.message, 401)
    return _start_session(session, user["id"])


@router.post("/logout")
async def logout(session: OptionalSession):
    if session is not None:
        try:
            session_store.destroy(session.session_id)
        except Exception:
            logger.warning("Failed to destroy session for user %s", session.user_id, exc_info=True)
            return RedirectResponse(PROFILE_PATH, status_code=303)
        logger.info("User %s logged out", session.user_id)
    response = RedirectResponse(LOGIN_PATH, status_code=303)
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response


@router.get(PROFILE_PATH, response_model=ProfileResponse)
async def profile(session: CurrentSession, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, session.user_id)
    if user is None:
        return RedirectResponse(LOGIN_PATH, status_code=303)
    blog_posts = await post_service.get_posts_by_author(db, session.user_id)
    return {"user": user, "blog_posts": blog_posts}
