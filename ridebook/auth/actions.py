"""Login, signup and sign-out.

Both login and signup return the dashboard path for the user's role and
raise an ``AuthError`` subclass otherwise. Session cookies end up queued on
the ``AuthClient`` passed in; the routes only write them on success.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ridebook.auth.admin_codes import check_admin_code, consume_admin_code
from ridebook.auth.client import USER_ALREADY_EXISTS, AuthApiError, AuthClient
from ridebook.auth.errors import (
    EmailAlreadyRegistered,
    InvalidCredentials,
    InvalidRole,
    RoleAssignmentFailed,
    RoleResolutionError,
    SignupFailed,
    ValidationError,
)
from ridebook.auth.roles import Role, assign_role, get_user_role, parse_role
from ridebook.core import config

logger = logging.getLogger(__name__)


def login(client: AuthClient, db: Session, email: str | None, password: str | None) -> str:
    email = (email or '').strip()
    if not email or not password:
        raise ValidationError('Email and password are required')

    try:
        response = client.sign_in_with_password(email, password)
    except AuthApiError as exc:
        logger.warning('Login rejected: %s', exc.code)
        raise InvalidCredentials() from exc

    try:
        stored_role = get_user_role(db, response.user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Role lookup failed for user %s', response.user.id)
        raise RoleResolutionError() from exc

    if stored_role is None:
        logger.warning('No role assigned to user %s', response.user.id)
        raise RoleResolutionError()

    role = parse_role(stored_role)
    if role is None:
        logger.warning('User %s has unknown role %r', response.user.id, stored_role)
        raise InvalidRole()

    return role.dashboard_path


def signup(
    client: AuthClient,
    db: Session,
    email: str | None,
    password: str | None,
    role: str | None,
    admin_code: str | None = None,
) -> str:
    email = (email or '').strip()
    if not email or not password or not role:
        raise ValidationError('All fields are required')

    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters')

    selected_role = parse_role(role)
    if selected_role is None:
        raise InvalidRole()

    code = (admin_code or '').strip()
    if selected_role is Role.ADMIN:
        if not code:
            raise ValidationError('Admin code is required for admin registration')
        # Must pass before any account exists.
        check_admin_code(db, code)

    try:
        response = client.sign_up(email, password, metadata={'role': selected_role.value})
    except AuthApiError as exc:
        logger.warning('Signup failed: %s', exc.code)
        if exc.code == USER_ALREADY_EXISTS:
            raise EmailAlreadyRegistered() from exc
        raise SignupFailed(exc.message or None) from exc

    # The new session is not what ``client`` was built from; resolve the user through it.
    session_client = client.with_session(response.session)
    user = session_client.get_user()
    if user is None:
        logger.error('New session for user %s did not validate', response.user.id)
        raise RoleAssignmentFailed()

    try:
        assign_role(db, user.id, selected_role)
    except SQLAlchemyError as exc:
        logger.exception('Role insertion failed for user %s', user.id)
        raise RoleAssignmentFailed() from exc

    if selected_role is Role.ADMIN:
        _mark_code_used(db, code, user.id)

    return selected_role.dashboard_path


def sign_out(client: AuthClient) -> None:
    client.sign_out()


def _mark_code_used(db: Session, code: str, user_id: str) -> None:
    # Bookkeeping only: the account and role already exist.
    try:
        consumed = consume_admin_code(db, code, user_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception('Admin code update failed for user %s', user_id)
        return
    if not consumed:
        logger.error('Admin code was consumed by another signup before user %s', user_id)
