"""Post schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CreatorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class PostResponse(BaseModel):
    """Post response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    image_url: str | None
    creator: CreatorResponse
    created_at: datetime
    updated_at: datetime


class PostListResponse(BaseModel):
    """One page of the feed."""

    posts: list[PostResponse]
    total_posts: int
    page: int
    page_size: int


class MessageResponse(BaseModel):
    message: str
