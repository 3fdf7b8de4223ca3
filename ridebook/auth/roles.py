from enum import Enum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ridebook.models.user_role import UserRole

LANDING_PATH = '/'


class Role(str, Enum):
    PASSENGER = 'passenger'
    DRIVER = 'driver'
    ADMIN = 'admin'

    @property
    def dashboard_path(self) -> str:
        return DASHBOARD_PATHS[self]


DASHBOARD_PATHS = {
    Role.PASSENGER: '/passengers',
    Role.DRIVER: '/driver',
    Role.ADMIN: '/admin',
}


def parse_role(value: str | None) -> Role | None:
    """Return the matching role, or None for anything that is not one."""
    if not value:
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def get_user_role(db: Session, user_id: str) -> str | None:
    """Stored role string for ``user_id``; SQLAlchemy errors propagate."""
    assignment = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    if assignment is None:
        return None
    return assignment.role


def assign_role(db: Session, user_id: str, role: Role) -> None:
    # user_roles.user_id is unique, so a second assignment raises IntegrityError.
    db.add(UserRole(user_id=user_id, role=role.value))
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
