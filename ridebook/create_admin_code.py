"""Create an admin invitation code and print it to stdout.

Usage:
    python -m ridebook.create_admin_code [CODE]
"""
import sys

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ridebook.auth.admin_codes import create_admin_code
from ridebook.database import Base, SessionLocal, engine
from ridebook.models import admin_code, auth_session, user, user_role  # noqa: F401  (register tables)


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    requested_code = args[0].strip() if args else None
    if args and not requested_code:
        print("Admin code must not be blank.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        Base.metadata.create_all(bind=engine)
        created = create_admin_code(db, requested_code)
    except IntegrityError:
        db.rollback()
        print(f"Admin code {requested_code!r} already exists.", file=sys.stderr)
        return 1
    except SQLAlchemyError as exc:
        db.rollback()
        print(f"Could not create admin code: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(created.code)
    return 0


if __name__ == "__main__":
    sys.exit(main())
