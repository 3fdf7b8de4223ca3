"""Admin invitation code model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from ridebook.database import Base
from ridebook.core.utils import utc_now


class AdminCode(Base):
    """Single-use code required to register as an admin."""
    __tablename__ = "admin_codes"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    used_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)
