"""
Session gate — FastAPI dependencies that resolve the request's session.

``get_session`` never fails: a missing, unknown or expired cookie simply
yields ``None`` (an anonymous visitor).  ``require_session`` is the gate
for protected routes; it raises ``LoginRequired``, which the exception
handler registered in ``blog.main`` turns into a redirect to ``/login``.
"""
from typing import Annotated

from fastapi import Depends, Request
from fastapi.responses import RedirectResponse

from blog.config import settings
from blog.sessions import Session, session_store

LOGIN_PATH = "/login"


class LoginRequired(Exception):
    """Raised by the gate when the request has no authenticated session."""


def check_authenticated(session: Session | None) -> bool:
    """Allow iff *session* exists and is authenticated."""
    return session is not None and session.is_authenticated


async def get_session(request: Request) -> Session | None:
    return session_store.get(request.cookies.get(settings.SESSION_COOKIE_NAME))


async def require_session(
    session: Annotated[Session | None, Depends(get_session)],
) -> Session:
    if not check_authenticated(session):
        raise LoginRequired()
    return session


async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    return RedirectResponse(LOGIN_PATH, status_code=303)


# Type annotations for dependency injection
OptionalSession = Annotated[Session | None, Depends(get_session)]
CurrentSession = Annotated[Session, Depends(require_session)]
