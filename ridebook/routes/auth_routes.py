import logging

from fastapi import APIRouter, Depends, Form, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ridebook.auth import actions, session_utils
from ridebook.auth.client import AuthClient, write_session_cookies
from ridebook.auth.dependencies import get_auth_client
from ridebook.auth.errors import AuthError
from ridebook.auth.roles import Role
from ridebook.database import get_db

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class FormPageResponse(BaseModel):
    page: str
    action: str
    fields: list[str]
    roles: list[str] = []


class SessionStatusResponse(BaseModel):
    authenticated: bool
    expires_at: int | None = None
    expiring_soon: bool = False


def error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={'error': exc.detail})


def database_unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={'error': 'Database unavailable. Please try again later.'},
    )


def revalidate_layout(response: Response) -> Response:
    """Keep browsers and proxies from serving a view rendered for the previous session."""
    response.headers['Cache-Control'] = 'no-store'
    return response


def auth_redirect(location: str, client: AuthClient) -> RedirectResponse:
    response = RedirectResponse(url=location, status_code=status.HTTP_303_SEE_OTHER)
    write_session_cookies(response, client.pending_cookies)
    return revalidate_layout(response)


@router.get('/login', response_model=FormPageResponse)
def login_page():
    return FormPageResponse(page='login', action='/login', fields=['email', 'password'])


@router.post('/login')
def login(
    email: str = Form(default=''),
    password: str = Form(default=''),
    client: AuthClient = Depends(get_auth_client),
    db: Session = Depends(get_db),
):
    try:
        location = actions.login(client, db, email, password)
    except AuthError as exc:
        return error_response(exc)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Login failed on a database error')
        return database_unavailable()
    return auth_redirect(location, client)


@router.get('/signup', response_model=FormPageResponse)
def signup_page():
    return FormPageResponse(
        page='signup',
        action='/signup',
        fields=['email', 'password', 'role', 'admin_code'],
        roles=[role.value for role in Role],
    )


@router.post('/signup')
def signup(
    email: str = Form(default=''),
    password: str = Form(default=''),
    role: str = Form(default=''),
    admin_code: str | None = Form(default=None),
    client: AuthClient = Depends(get_auth_client),
    db: Session = Depends(get_db),
):
    try:
        location = actions.signup(client, db, email, password, role, admin_code)
    except AuthError as exc:
        return error_response(exc)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Signup failed on a database error')
        return database_unavailable()
    return auth_redirect(location, client)


@router.get('/session', response_model=SessionStatusResponse)
def session_status(client: AuthClient = Depends(get_auth_client)):
    if session_utils.validate_session(client) is None:
        return SessionStatusResponse(authenticated=False)
    return SessionStatusResponse(
        authenticated=True,
        expires_at=session_utils.get_session_expiration(client),
        expiring_soon=session_utils.is_session_expiring_soon(client),
    )
