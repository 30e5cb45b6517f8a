"""User model."""

from sqlalchemy import JSON, Column, Integer, String

from feedboard.database import Base
from feedboard.models.mixins import TimestampMixin

DEFAULT_STATUS = "I am new!"


class User(Base, TimestampMixin):
    """User model for authentication and post ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    status = Column(String(500), nullable=False, default=DEFAULT_STATUS)

    # Owned post ids, written separately from posts.creator_id
    post_ids = Column(JSON, nullable=False, default=list)
