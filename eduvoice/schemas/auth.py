"""Authentication schemas."""

from pydantic import BaseModel, Field

from eduvoice.schemas.base import BaseSchema
from eduvoice.schemas.user import UserRead


class LoginRequest(BaseModel):
    """Username/password login."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseSchema):
    """
    Response for successful registration or login.

    access_token is only set in token auth mode; session mode sets a cookie instead.
    """

    user: UserRead
    access_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = Field(None, description="Credential lifetime in seconds")
