"""FastAPI dependencies for authentication, storage and services."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from feedboard.config import get_settings
from feedboard.database import get_db
from feedboard.services.auth import TokenService, get_token_service
from feedboard.services.context import SessionContext, resolve_session_context
from feedboard.services.feed_service import FeedService
from feedboard.services.images import ImageStore
from feedboard.services.store import DocumentStore

# Optional bearer: a missing token yields an anonymous context, not a 403
optional_bearer = HTTPBearer(auto_error=False)


def get_session_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(optional_bearer)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> SessionContext:
    """Resolve who is calling. Never rejects the request."""
    token = credentials.credentials if credentials else None
    return resolve_session_context(token, token_service)


def get_store(
    db: Annotated[Session, Depends(get_db)],
) -> DocumentStore:
    """Get the document store for this request's session."""
    return DocumentStore(db)


def get_image_store() -> ImageStore:
    """Get the image store rooted at the configured directory."""
    settings = get_settings()
    return ImageStore(settings.images_dir, max_bytes=settings.max_image_bytes)


def get_feed_service(
    store: Annotated[DocumentStore, Depends(get_store)],
    images: Annotated[ImageStore, Depends(get_image_store)],
) -> FeedService:
    """Get feed service with dependencies."""
    return FeedService(store, images, posts_per_page=get_settings().posts_per_page)
