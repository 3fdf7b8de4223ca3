"""Session/auth client.

Owns credentials and sessions: password sign-in, sign-up, a validating
current-user lookup, session info and sign-out. Cookie changes are queued in
``pending_cookies`` rather than written anywhere, so the caller decides which
response receives them and with which max-age.
"""
import logging
import secrets
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.responses import Response

from ridebook.auth import jwt_handler
from ridebook.auth.passwords import hash_password, verify_password
from ridebook.core import config
from ridebook.core.utils import utc_now
from ridebook.models.auth_session import AuthSession
from ridebook.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'invalid_credentials'
USER_ALREADY_EXISTS = 'user_already_exists'


class AuthApiError(Exception):
    """Failure reported by the auth backend."""

    def __init__(self, message: str, code: str = 'unexpected_failure'):
        super().__init__(message)
        self.message = message
        self.code = code


class AuthUser(BaseModel):
    id: str
    email: str
    user_metadata: dict = Field(default_factory=dict)
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class SessionInfo(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: int  # access token expiry, epoch seconds
    user: AuthUser


class AuthResponse(BaseModel):
    user: AuthUser
    session: SessionInfo


@dataclass
class SessionCookie:
    name: str
    value: str
    max_age: int | None = None

    @property
    def is_deletion(self) -> bool:
        return self.value == ''


def normalize_email(email: str) -> str:
    return email.strip().lower()


def write_session_cookies(
    response: Response,
    cookies: Iterable[SessionCookie],
    max_age: int | None = None,
) -> None:
    """Copy queued cookies onto a response. ``max_age`` overrides the proposed one."""
    for cookie in cookies:
        if cookie.is_deletion:
            response.delete_cookie(cookie.name, path='/')
            continue
        response.set_cookie(
            cookie.name,
            cookie.value,
            max_age=max_age if max_age is not None else cookie.max_age,
            path='/',
            httponly=True,
            secure=config.COOKIE_SECURE,
            samesite='lax',
        )


class AuthClient:
    def __init__(self, db: Session, cookies: Mapping[str, str] | None = None):
        self.db = db
        self.cookies = dict(cookies or {})
        self.pending_cookies: list[SessionCookie] = []

    def with_session(self, session: SessionInfo) -> 'AuthClient':
        """A client bound to ``session`` instead of the cookies this one was built from."""
        return AuthClient(
            self.db,
            {
                config.ACCESS_TOKEN_COOKIE: session.access_token,
                config.REFRESH_TOKEN_COOKIE: session.refresh_token,
            },
        )

    def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        user = self.db.query(User).filter(User.email == normalize_email(email)).first()
        if user is None or not verify_password(password, user.hashed_password):
            raise AuthApiError('Invalid login credentials', INVALID_CREDENTIALS)
        return self._start_session(user)

    def sign_up(self, email: str, password: str, metadata: dict | None = None) -> AuthResponse:
        normalized_email = normalize_email(email)
        existing = self.db.query(User.id).filter(User.email == normalized_email).first()
        if existing is not None:
            raise AuthApiError('User already registered', USER_ALREADY_EXISTS)

        user = User(
            email=normalized_email,
            hashed_password=hash_password(password),
            user_metadata=dict(metadata or {}),
        )
        self.db.add(user)
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            raise AuthApiError('User already registered', USER_ALREADY_EXISTS) from exc

        return self._start_session(user)

    def get_user(self) -> AuthUser | None:
        """
        Validating lookup of the current user.

        The access token signature and expiry are checked and its session row
        must still be active. An expired or missing access token falls back to
        the refresh token, which rotates it and queues new cookies.
        """
        access_token = self.cookies.get(config.ACCESS_TOKEN_COOKIE)
        if not access_token:
            return self._refresh()

        try:
            payload = jwt_handler.decode_access_token(access_token)
        except jwt.ExpiredSignatureError:
            return self._refresh()
        except jwt.InvalidTokenError:
            logger.info('Rejected invalid access token')
            return None

        record = self._active_session_query().filter(AuthSession.id == payload['sid']).first()
        if record is None or record.user_id != payload['sub']:
            return None

        user = self.db.query(User).filter(User.id == record.user_id).first()
        if user is None:
            return None
        return AuthUser.model_validate(user)

    def get_session(self) -> SessionInfo | None:
        """
        Session as stored in the cookies.

        Only the token signature is checked, not expiry or revocation; use
        ``get_user`` to decide whether a request is authenticated.
        """
        access_token = self.cookies.get(config.ACCESS_TOKEN_COOKIE)
        if not access_token:
            return None
        payload = self._read_claims(access_token)
        if payload is None:
            return None
        return SessionInfo(
            access_token=access_token,
            refresh_token=self.cookies.get(config.REFRESH_TOKEN_COOKIE, ''),
            expires_at=payload['exp'],
            user=AuthUser(id=payload['sub'], email=payload.get('email', '')),
        )

    def sign_out(self) -> None:
        """Revoke the current session. Cookie deletions are queued even if revocation fails."""
        access_token = self.cookies.pop(config.ACCESS_TOKEN_COOKIE, None)
        refresh_token = self.cookies.pop(config.REFRESH_TOKEN_COOKIE, None)
        self.pending_cookies = [
            SessionCookie(name=config.ACCESS_TOKEN_COOKIE, value=''),
            SessionCookie(name=config.REFRESH_TOKEN_COOKIE, value=''),
        ]

        payload = self._read_claims(access_token) if access_token else None
        if payload is not None:
            query = self.db.query(AuthSession).filter(AuthSession.id == payload['sid'])
        elif refresh_token:
            query = self.db.query(AuthSession).filter(AuthSession.refresh_token == refresh_token)
        else:
            return

        query.filter(AuthSession.revoked_at.is_(None)).update(
            {AuthSession.revoked_at: utc_now()},
            synchronize_session=False,
        )
        self.db.commit()

    def _read_claims(self, access_token: str) -> dict | None:
        try:
            return jwt_handler.decode_access_token(access_token, verify_exp=False)
        except jwt.InvalidTokenError:
            return None

    def _active_session_query(self):
        return self.db.query(AuthSession).filter(
            AuthSession.revoked_at.is_(None),
            AuthSession.expires_at > utc_now(),
        )

    def _start_session(self, user: User) -> AuthResponse:
        record = AuthSession(
            user_id=user.id,
            refresh_token=secrets.token_urlsafe(32),
            expires_at=utc_now() + timedelta(hours=config.SESSION_LIFETIME_HOURS),
        )
        self.db.add(record)
        self.db.commit()
        return self._issue(user, record)

    def _refresh(self) -> AuthUser | None:
        refresh_token = self.cookies.get(config.REFRESH_TOKEN_COOKIE)
        if not refresh_token:
            return None

        record = self._active_session_query().filter(AuthSession.refresh_token == refresh_token).first()
        if record is not None and self._rotate(record.id, refresh_token):
            logger.debug('Refreshed session %s', record.id)
        else:
            # Another request carrying the same cookies rotated first; hand out the current pair.
            reuse_cutoff = utc_now() - timedelta(seconds=config.REFRESH_TOKEN_REUSE_SECONDS)
            record = self._active_session_query().filter(
                AuthSession.previous_refresh_token == refresh_token,
                AuthSession.rotated_at >= reuse_cutoff,
            ).first()
            if record is None:
                return None
            logger.debug('Reused rotated refresh token for session %s', record.id)

        user = self.db.query(User).filter(User.id == record.user_id).first()
        if user is None:
            return None
        return self._issue(user, record).user

    def _rotate(self, session_id: str, refresh_token: str) -> bool:
        """Swap in a new refresh token unless ``refresh_token`` is no longer current."""
        now = utc_now()
        updated = self.db.query(AuthSession).filter(
            AuthSession.id == session_id,
            AuthSession.refresh_token == refresh_token,
        ).update(
            {
                AuthSession.refresh_token: secrets.token_urlsafe(32),
                AuthSession.previous_refresh_token: refresh_token,
                AuthSession.rotated_at: now,
                AuthSession.expires_at: now + timedelta(hours=config.SESSION_LIFETIME_HOURS),
            },
            synchronize_session=False,
        )
        self.db.commit()
        return updated == 1

    def _issue(self, user: User, record: AuthSession) -> AuthResponse:
        access_token, expires_at = jwt_handler.create_access_token(
            subject=user.id,
            session_id=record.id,
            email=user.email,
        )
        auth_user = AuthUser.model_validate(user)
        session = SessionInfo(
            access_token=access_token,
            refresh_token=record.refresh_token,
            expires_at=expires_at,
            user=auth_user,
        )

        max_age = config.SESSION_LIFETIME_HOURS * 3600
        for name, value in (
            (config.ACCESS_TOKEN_COOKIE, session.access_token),
            (config.REFRESH_TOKEN_COOKIE, session.refresh_token),
        ):
            self.cookies[name] = value
            self.pending_cookies.append(SessionCookie(name=name, value=value, max_age=max_age))

        return AuthResponse(user=auth_user, session=session)
