import logging
import time

from sqlalchemy.exc import SQLAlchemyError

from ridebook.auth.client import AuthClient, AuthUser
from ridebook.core import config

logger = logging.getLogger(__name__)

EXPIRY_WARNING_MS = config.SESSION_EXPIRY_WARNING_SECONDS * 1000


def validate_session(client: AuthClient) -> AuthUser | None:
    """Current user if the session is still valid, otherwise None."""
    try:
        return client.get_user()
    except SQLAlchemyError:
        client.db.rollback()
        logger.exception('Session validation failed')
        return None


def get_session_expiration(client: AuthClient) -> int | None:
    """Session expiry in epoch milliseconds, or None without a session."""
    session = client.get_session()
    if session is None or not session.expires_at:
        return None
    return session.expires_at * 1000


def expires_within(expiration_ms: int | None, now_ms: int, window_ms: int = EXPIRY_WARNING_MS) -> bool:
    if expiration_ms is None:
        return False
    return expiration_ms - now_ms < window_ms


def is_session_expiring_soon(client: AuthClient, now_ms: int | None = None) -> bool:
    """True when the session ends in less than five minutes."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return expires_within(get_session_expiration(client), now_ms)
