"""User model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from tasktracker.database import Base
from tasktracker.models.mixins import TimestampMixin, utcnow

DEFAULT_AVATAR = "https://via.placeholder.com/150/6366f1/ffffff?text=U"


class User(Base, TimestampMixin):
    """User model for authentication and task ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    # Always stored lowercased, which makes the unique index case-insensitive
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(500), nullable=False, default=DEFAULT_AVATAR)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True, default=utcnow)

    @property
    def profile_url(self) -> str:
        """Public URL of the user's profile."""
        return f"/api/users/{self.id}"
