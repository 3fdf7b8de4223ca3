import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ridebook.auth.client import AuthClient  # noqa: E402
from ridebook.database import Base  # noqa: E402
from ridebook.models import admin_code, auth_session, user, user_role  # noqa: E402,F401
from ridebook.models.admin_code import AdminCode  # noqa: E402
from ridebook.models.user_role import UserRole  # noqa: E402


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Create an account with an optional role row; returns the signed-in client."""

    def _make_user(email: str = 'rider@example.com', password: str = 'secret1', role: str | None = 'passenger'):
        client = AuthClient(db)
        response = client.sign_up(email, password, metadata={'role': role})
        if role is not None:
            db.add(UserRole(user_id=response.user.id, role=role))
            db.commit()
        return client, response

    return _make_user


@pytest.fixture
def make_admin_code(db):
    def _make_admin_code(code: str = 'WELCOME1', is_active: bool = True, used_by: str | None = None) -> AdminCode:
        admin_code = AdminCode(code=code, is_active=is_active, used_by=used_by)
        db.add(admin_code)
        db.commit()
        return admin_code

    return _make_admin_code
