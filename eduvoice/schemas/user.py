"""User schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from eduvoice.schemas.base import BaseSchema, RequestSchema

Plan = Literal["free", "student_pro", "teacher_pro"]
Role = Literal["student", "teacher"]


class UserCreate(BaseModel):
    """Registration payload. Passwords are taken verbatim."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    language: str = Field(default="en", min_length=2, max_length=10)
    plan: Plan = "free"
    role: Role = "student"


class UserRead(BaseSchema):
    """Schema for reading user data. Never carries the password hash."""

    id: UUID
    username: str
    email: str
    role: str
    plan: str
    language: str
    created_at: datetime


class UserUpdate(RequestSchema):
    """Schema for updating the user profile."""

    language: str | None = Field(None, min_length=2, max_length=10)
    plan: Plan | None = None
