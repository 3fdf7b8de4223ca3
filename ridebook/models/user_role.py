"""Role assignment model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from ridebook.database import Base


class UserRole(Base):
    """The single authoritative role of a user."""
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, index=True, nullable=False)
    role = Column(String, nullable=False)  # passenger/driver/admin
