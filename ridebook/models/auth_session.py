"""Auth session model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, String
from ridebook.database import Base
from ridebook.core.utils import generate_id, utc_now


class AuthSession(Base):
    """Server-side record backing a pair of session cookies."""
    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    refresh_token = Column(String, unique=True, index=True, nullable=False)
    # The token rotated out last, honoured briefly for requests already in flight.
    previous_refresh_token = Column(String, index=True, nullable=True)
    rotated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
