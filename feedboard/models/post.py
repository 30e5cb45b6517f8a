"""Post model."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from feedboard.database import Base
from feedboard.models.mixins import TimestampMixin


class Post(Base, TimestampMixin):
    """An authored post. The creator is fixed at creation."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(500), nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    creator = relationship("User")
