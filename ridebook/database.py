from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ridebook.core import config


def _connect_args(url: str) -> dict:
    # FastAPI runs sync handlers in a threadpool, so SQLite connections cross threads.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
