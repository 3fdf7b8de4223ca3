import logging
from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import SQLAlchemyError

from ridebook.auth.client import AuthClient, AuthUser, SessionCookie, write_session_cookies
from ridebook.auth.roles import DASHBOARD_PATHS, LANDING_PATH
from ridebook.core import config
from ridebook import database

logger = logging.getLogger(__name__)

PROTECTED_PATH_PREFIXES = tuple(DASHBOARD_PATHS.values())


def is_protected_path(path: str) -> bool:
    return path.startswith(PROTECTED_PATH_PREFIXES)


def refresh_session(cookies: dict[str, str]) -> tuple[AuthUser | None, list[SessionCookie]]:
    """Validate the request's session, rotating tokens when needed."""
    db = database.SessionLocal()
    try:
        client = AuthClient(db, cookies)
        try:
            user = client.get_user()
        except SQLAlchemyError:
            db.rollback()
            logger.exception('Session refresh failed')
            return None, []
        return user, client.pending_cookies
    finally:
        db.close()


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Refreshes the auth session on every request and keeps anonymous
    visitors out of the role dashboards.

    The user is always re-validated against the session store rather than
    trusted from the cookie alone.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        user, cookies = await run_in_threadpool(refresh_session, dict(request.cookies))

        if user is None and is_protected_path(request.url.path):
            return RedirectResponse(url=LANDING_PATH, status_code=status.HTTP_307_TEMPORARY_REDIRECT)

        request.state.refreshed_cookies = {cookie.name: cookie.value for cookie in cookies}
        response = await call_next(request)
        # A handler that started or ended a session has already set these cookies.
        already_set = {header.split('=', 1)[0] for header in response.headers.getlist('set-cookie')}
        write_session_cookies(
            response,
            [cookie for cookie in cookies if cookie.name not in already_set],
            max_age=config.SESSION_COOKIE_MAX_AGE,
        )
        return response


def add_middleware(app: FastAPI) -> None:
    """Add all middleware to the FastAPI application."""
    app.add_middleware(SessionMiddleware)
