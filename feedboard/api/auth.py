"""Authentication API endpoints.

Register and login hash or verify passwords, which is CPU bound, so they are
plain ``def`` handlers and run in the threadpool.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from feedboard.api.dependencies import get_feed_service, get_session_context, get_store
from feedboard.models.user import User
from feedboard.schemas.auth import (
    AuthResponse,
    StatusResponse,
    StatusUpdate,
    UserLogin,
    UserRegister,
    UserResponse,
)
from feedboard.services.auth import (
    TokenService,
    authenticate_user,
    create_user,
    get_token_service,
)
from feedboard.services.context import SessionContext
from feedboard.services.feed_service import FeedService
from feedboard.services.store import DocumentStore

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def build_auth_response(user: User, token_service: TokenService) -> AuthResponse:
    return AuthResponse(
        access_token=token_service.issue(user.id, user.email),
        expires_in=int(token_service.lifetime.total_seconds()),
        user=UserResponse.model_validate(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    store: Annotated[DocumentStore, Depends(get_store)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Register a new user."""
    user = create_user(store, user_data.email, user_data.password, user_data.name)
    return build_auth_response(user, token_service)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    store: Annotated[DocumentStore, Depends(get_store)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
):
    """Login with email and password."""
    user = authenticate_user(store, credentials.email, credentials.password)
    return build_auth_response(user, token_service)


@router.get("/status", response_model=StatusResponse)
def get_status(
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
):
    """Get the current user's status."""
    return StatusResponse(status=feed_service.get_status(ctx))


@router.patch("/status", response_model=StatusResponse)
def update_status(
    status_data: StatusUpdate,
    ctx: Annotated[SessionContext, Depends(get_session_context)],
    feed_service: Annotated[FeedService, Depends(get_feed_service)],
):
    """Update the current user's status."""
    return StatusResponse(status=feed_service.update_status(ctx, status_data.status))
