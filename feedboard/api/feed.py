"""Feed API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from feedboard.api.dependencies import get_feed_service, get_session_context
from feedboard.config import get_settings
from feedboard.schemas.post import MessageResponse, PostListResponse, PostResponse
from feedboard.services.context import SessionContext
from feedboard.services.feed_service import FeedService, ImageChange, ImageUpload
from feedboard.services.images import ALLOWED_IMAGE_TYPES

router = APIRouter(prefix="/api/v1/feed", tags=["feed"])


def read_upload(image: UploadFile | None) -> ImageUpload | None:
    """Read a multipart upload into memory, or None if nothing was sent.

    Disallowed types are dropped unread. At most one byte past the size
    limit is read so the image store can reject oversized files.
    """
    if image is None or not image.filename:
        return None
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        return None
    data = image.file.read(get_settings().max_image_bytes + 1)
    return ImageUpload(data=data, content_type=image.content_type)


@router.get("/posts", response_model=PostListResponse)
def get_posts(
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
    page: int | None = Query(default=None, description="1-based page number"),
):
    """Get one page of posts, newest first."""
    result = feed_service.list_posts(ctx, page=page)
    return PostListResponse(
        posts=[PostResponse.model_validate(post) for post in result.posts],
        total_posts=result.total_posts,
        page=result.page,
        page_size=result.page_size,
    )


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
    title: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
    image: Annotated[UploadFile | None, File(description="JPEG or PNG image")] = None,
):
    """Create a new post. Unsupported image types are ignored."""
    post = feed_service.create_post(ctx, title, content, read_upload(image))
    return PostResponse.model_validate(post)


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(
    post_id: int,
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
):
    """Get a specific post."""
    return PostResponse.model_validate(feed_service.get_post(post_id, ctx))


@router.put("/posts/{post_id}", response_model=PostResponse)
def update_post(
    post_id: int,
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
    title: Annotated[str, Form()] = "",
    content: Annotated[str, Form()] = "",
    image: Annotated[UploadFile | None, File(description="Replacement image")] = None,
    clear_image: Annotated[bool, Form()] = False,
):
    """Update a post. Without a new image or ``clear_image`` the image is kept."""
    upload = read_upload(image)
    if upload is not None:
        change = ImageChange.set_to(upload)
    elif clear_image:
        change = ImageChange.clear()
    else:
        change = ImageChange.keep()

    post = feed_service.update_post(post_id, ctx, title, content, change)
    return PostResponse.model_validate(post)


@router.delete("/posts/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
):
    """Delete a post."""
    feed_service.delete_post(post_id, ctx)
    return MessageResponse(message="Deleted post.")
