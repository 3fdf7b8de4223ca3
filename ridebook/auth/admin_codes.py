import secrets

from sqlalchemy.orm import Session

from ridebook.auth.errors import CodeAlreadyUsed, CodeDeactivated, InvalidCode
from ridebook.core.utils import utc_now
from ridebook.models.admin_code import AdminCode


def check_admin_code(db: Session, code: str) -> AdminCode:
    """Raise unless ``code`` exists, is active and has not been used."""
    admin_code = db.query(AdminCode).filter(AdminCode.code == code).first()
    if admin_code is None:
        raise InvalidCode()
    if not admin_code.is_active:
        raise CodeDeactivated()
    if admin_code.used_by:
        raise CodeAlreadyUsed()
    return admin_code


def consume_admin_code(db: Session, code: str, user_id: str) -> bool:
    """
    Mark ``code`` as used by ``user_id``.

    Single conditional update: only an active, unused code is touched, so of
    two concurrent signups with the same code at most one wins. Returns
    whether this call consumed the code.
    """
    updated = db.query(AdminCode).filter(
        AdminCode.code == code,
        AdminCode.used_by.is_(None),
        AdminCode.is_active.is_(True),
    ).update(
        {
            AdminCode.used_by: user_id,
            AdminCode.used_at: utc_now(),
            AdminCode.is_active: False,
        },
        synchronize_session=False,
    )
    db.commit()
    return updated == 1


def create_admin_code(db: Session, code: str | None = None) -> AdminCode:
    admin_code = AdminCode(code=code or secrets.token_urlsafe(9), is_active=True)
    db.add(admin_code)
    db.commit()
    db.refresh(admin_code)
    return admin_code
