import pytest
from fastapi.testclient import TestClient

from ridebook.core import config
from ridebook.main import app


@pytest.fixture
def http_client(monkeypatch, session_factory):
    monkeypatch.setattr('ridebook.database.SessionLocal', session_factory)
    return TestClient(app, follow_redirects=False)


def test_anonymous_visitor_is_sent_to_landing_page(http_client) -> None:
    response = http_client.get('/passengers')

    assert response.status_code == 307
    assert response.headers['location'] == '/'


def test_driver_is_kept_on_own_dashboard_until_sign_out(http_client) -> None:
    response = http_client.post(
        '/signup',
        data={'email': 'driver@example.com', 'password': 'secret1', 'role': 'driver'},
    )
    assert response.status_code == 303
    assert response.headers['location'] == '/driver'
    assert config.ACCESS_TOKEN_COOKIE in http_client.cookies

    response = http_client.get('/admin')
    assert response.status_code == 307
    assert response.headers['location'] == '/driver'

    response = http_client.get('/driver')
    assert response.status_code == 200
    assert response.json()['dashboard'] == 'driver'
    assert response.json()['email'] == 'driver@example.com'

    response = http_client.post('/driver/sign-out')
    assert response.status_code == 303
    assert response.headers['location'] == '/'

    response = http_client.get('/driver')
    assert response.status_code == 307
    assert response.headers['location'] == '/'


def test_login_form_error_is_reported_as_json(http_client) -> None:
    response = http_client.post('/login', data={'email': '', 'password': ''})

    assert response.status_code == 400
    assert response.json() == {'error': 'Email and password are required'}
    assert 'set-cookie' not in response.headers
