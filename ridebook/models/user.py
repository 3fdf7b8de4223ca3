"""User model definitions."""

from sqlalchemy import JSON, Column, DateTime, String
from ridebook.database import Base
from ridebook.core.utils import generate_id, utc_now


class User(Base):
    """Represents an account known to the auth backend."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    user_metadata = Column(JSON, default=dict)  # role backup copy, not authoritative
    created_at = Column(DateTime, default=utc_now)
