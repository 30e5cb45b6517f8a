"""Pydantic schemas for API requests and responses."""

from feedboard.schemas.auth import (
    AuthResponse,
    StatusResponse,
    StatusUpdate,
    UserLogin,
    UserRegister,
    UserResponse,
)
from feedboard.schemas.post import CreatorResponse, MessageResponse, PostListResponse, PostResponse

__all__ = [
    "UserRegister",
    "UserLogin",
    "UserResponse",
    "AuthResponse",
    "StatusUpdate",
    "StatusResponse",
    "CreatorResponse",
    "PostResponse",
    "PostListResponse",
    "MessageResponse",
]
