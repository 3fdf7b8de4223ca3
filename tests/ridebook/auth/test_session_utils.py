import pytest
from sqlalchemy.exc import SQLAlchemyError

from ridebook.auth.client import AuthClient
from ridebook.auth.session_utils import (
    EXPIRY_WARNING_MS,
    expires_within,
    get_session_expiration,
    is_session_expiring_soon,
    validate_session,
)

NOW_MS = 1_767_225_600_000


@pytest.mark.parametrize(
    ('expiration_ms', 'expected'),
    [
        (None, False),
        (NOW_MS + EXPIRY_WARNING_MS, False),
        (NOW_MS + EXPIRY_WARNING_MS - 1, True),
        (NOW_MS + EXPIRY_WARNING_MS + 1, False),
        (NOW_MS, True),
        (NOW_MS - 60_000, True),
    ],
)
def test_expires_within_uses_strict_five_minute_window(expiration_ms, expected: bool) -> None:
    assert expires_within(expiration_ms, NOW_MS) is expected


def test_warning_window_is_five_minutes() -> None:
    assert EXPIRY_WARNING_MS == 5 * 60 * 1000


def test_no_session_is_never_expiring_soon(db) -> None:
    client = AuthClient(db)

    assert get_session_expiration(client) is None
    assert is_session_expiring_soon(client) is False


def test_session_expiration_is_reported_in_milliseconds(db, make_user) -> None:
    client, response = make_user()

    assert get_session_expiration(AuthClient(db, client.cookies)) == response.session.expires_at * 1000


def test_fresh_session_is_not_expiring_soon(db, make_user) -> None:
    client, _ = make_user()

    assert is_session_expiring_soon(AuthClient(db, client.cookies)) is False


def test_session_close_to_expiry_is_expiring_soon(db, make_user) -> None:
    client, response = make_user()
    one_minute_before_expiry = response.session.expires_at * 1000 - 60_000

    assert is_session_expiring_soon(AuthClient(db, client.cookies), now_ms=one_minute_before_expiry) is True


def test_validate_session_returns_current_user(db, make_user) -> None:
    client, response = make_user()

    user = validate_session(AuthClient(db, client.cookies))

    assert user is not None
    assert user.id == response.user.id


def test_validate_session_turns_errors_into_no_session(db, monkeypatch) -> None:
    client = AuthClient(db)

    def failing_get_user():
        raise SQLAlchemyError('connection lost')

    monkeypatch.setattr(client, 'get_user', failing_get_user)

    assert validate_session(client) is None
