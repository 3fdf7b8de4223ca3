import logging
from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ridebook.auth.client import AuthClient, AuthUser
from ridebook.auth.roles import LANDING_PATH, Role, get_user_role, parse_role
from ridebook.database import get_db

logger = logging.getLogger(__name__)


class RoleContext(BaseModel):
    user: AuthUser
    role: Role


def get_auth_client(request: Request, db: Session = Depends(get_db)) -> AuthClient:
    cookies = dict(request.cookies)
    # Tokens rotated by the session middleware during this request win over the stale ones.
    cookies.update(getattr(request.state, 'refreshed_cookies', {}))
    return AuthClient(db, cookies)


def redirect_to(location: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        headers={'Location': location},
    )


def resolve_role_context(client: AuthClient, db: Session, expected_role: Role) -> RoleContext:
    """
    Authorize a visit to the dashboard of ``expected_role``.

    Fails closed: a missing user, a missing or unreadable role row, or a role
    value outside the known ones all redirect to the landing page. A known
    but different role redirects to that role's own dashboard.
    """
    try:
        user = client.get_user()
    except SQLAlchemyError:
        db.rollback()
        logger.exception('User lookup failed')
        raise redirect_to(LANDING_PATH)
    if user is None:
        raise redirect_to(LANDING_PATH)

    try:
        stored_role = get_user_role(db, user.id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Role lookup failed for user %s', user.id)
        raise redirect_to(LANDING_PATH)
    if stored_role is None:
        raise redirect_to(LANDING_PATH)

    role = parse_role(stored_role)
    if role is None:
        logger.warning('User %s has unknown role %r', user.id, stored_role)
        raise redirect_to(LANDING_PATH)

    if role is not expected_role:
        raise redirect_to(role.dashboard_path)

    return RoleContext(user=user, role=role)


def require_role(expected_role: Role) -> Callable[..., RoleContext]:
    def guard(
        client: AuthClient = Depends(get_auth_client),
        db: Session = Depends(get_db),
    ) -> RoleContext:
        return resolve_role_context(client, db, expected_role)

    return guard
