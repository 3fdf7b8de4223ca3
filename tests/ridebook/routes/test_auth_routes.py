import json

from sqlalchemy.exc import SQLAlchemyError

from ridebook.auth.client import AuthClient
from ridebook.core import config
from ridebook.routes import auth_routes


def _set_cookie_names(response) -> set[str]:
    return {header.split('=', 1)[0] for header in response.headers.getlist('set-cookie')}


def test_login_page_lists_form_fields() -> None:
    page = auth_routes.login_page()

    assert page.action == '/login'
    assert page.fields == ['email', 'password']


def test_signup_page_offers_all_roles() -> None:
    page = auth_routes.signup_page()

    assert page.roles == ['passenger', 'driver', 'admin']
    assert 'admin_code' in page.fields


def test_login_redirects_to_dashboard_and_sets_session_cookies(db, make_user) -> None:
    make_user(email='driver@example.com', role='driver')

    response = auth_routes.login(
        email='driver@example.com',
        password='secret1',
        client=AuthClient(db),
        db=db,
    )

    assert response.status_code == 303
    assert response.headers['location'] == '/driver'
    assert response.headers['cache-control'] == 'no-store'
    assert _set_cookie_names(response) == {config.ACCESS_TOKEN_COOKIE, config.REFRESH_TOKEN_COOKIE}


def test_login_error_returns_message_without_cookies(db) -> None:
    response = auth_routes.login(email='', password='', client=AuthClient(db), db=db)

    assert response.status_code == 400
    assert json.loads(response.body) == {'error': 'Email and password are required'}
    assert 'set-cookie' not in response.headers


def test_login_with_bad_credentials_returns_401(db, make_user) -> None:
    make_user(email='rider@example.com')

    response = auth_routes.login(
        email='rider@example.com',
        password='wrong-one',
        client=AuthClient(db),
        db=db,
    )

    assert response.status_code == 401
    assert json.loads(response.body) == {'error': 'Invalid email or password'}


def test_login_without_role_does_not_set_cookies(db, make_user) -> None:
    make_user(email='rider@example.com', role=None)

    response = auth_routes.login(
        email='rider@example.com',
        password='secret1',
        client=AuthClient(db),
        db=db,
    )

    assert response.status_code == 403
    assert json.loads(response.body) == {'error': 'Unable to determine user role'}
    assert 'set-cookie' not in response.headers


def test_signup_redirects_to_dashboard(db) -> None:
    response = auth_routes.signup(
        email='a@x.com',
        password='secret1',
        role='passenger',
        admin_code=None,
        client=AuthClient(db),
        db=db,
    )

    assert response.status_code == 303
    assert response.headers['location'] == '/passengers'
    assert _set_cookie_names(response) == {config.ACCESS_TOKEN_COOKIE, config.REFRESH_TOKEN_COOKIE}


def test_signup_with_used_admin_code_is_rejected(db, make_admin_code) -> None:
    make_admin_code(code='USED1', used_by='someone-else')

    response = auth_routes.signup(
        email='boss@example.com',
        password='secret1',
        role='admin',
        admin_code='USED1',
        client=AuthClient(db),
        db=db,
    )

    assert response.status_code == 409
    assert json.loads(response.body) == {'error': 'This admin code has already been used'}


def test_signup_database_error_returns_503(db, monkeypatch) -> None:
    def failing_signup(*_args, **_kwargs):
        raise SQLAlchemyError('connection lost')

    monkeypatch.setattr('ridebook.routes.auth_routes.actions.signup', failing_signup)

    response = auth_routes.signup(
        email='a@x.com',
        password='secret1',
        role='passenger',
        admin_code=None,
        client=AuthClient(db),
        db=db,
    )

    assert response.status_code == 503


def test_session_status_for_anonymous_visitor(db) -> None:
    status = auth_routes.session_status(client=AuthClient(db))

    assert status.authenticated is False
    assert status.expires_at is None
    assert status.expiring_soon is False


def test_session_status_for_signed_in_user(db, make_user) -> None:
    client, response = make_user()

    status = auth_routes.session_status(client=AuthClient(db, client.cookies))

    assert status.authenticated is True
    assert status.expires_at == response.session.expires_at * 1000
    assert status.expiring_soon is False
