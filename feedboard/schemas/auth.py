"""Authentication schemas.

Email format and password length are checked by the auth service so that
every violation is reported together; these schemas only bound sizes.
"""

from pydantic import BaseModel, ConfigDict, Field


class UserRegister(BaseModel):
    """User registration request."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    name: str = Field(..., max_length=255)


class UserLogin(BaseModel):
    """User login request."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)


class UserResponse(BaseModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    status: str


class AuthResponse(BaseModel):
    """Authentication response with token and user info."""

    access_token: str
    token_type: str = "bearer"  # noqa: S105
    expires_in: int
    user: UserResponse


class StatusUpdate(BaseModel):
    status: str = Field(..., max_length=500)


class StatusResponse(BaseModel):
    status: str
