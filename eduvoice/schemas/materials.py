"""Pydantic schemas for study materials."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from eduvoice.schemas.base import BaseSchema, OwnedMixin


# Request schemas
class YouTubeMaterialRequest(BaseModel):
    """Register a YouTube video as a material."""

    url: str = Field(..., min_length=1, max_length=2048)


class ImageAnalysisRequest(BaseModel):
    """Stateless vision analysis of an inline image."""

    image_base64: str = Field(..., min_length=1)
    mime_type: str = Field(default="image/jpeg", pattern=r"^image/[\w.+-]+$")


# Response schemas
class MaterialRead(BaseSchema, OwnedMixin):
    """Material response."""

    filename: str
    type: str
    content: str | None = None
    file_metadata: dict[str, Any] | None = None
    uploaded_at: datetime


class MaterialListResponse(BaseModel):
    """List of materials."""

    materials: list[MaterialRead]
    total: int


class ImageAnalysisResponse(BaseModel):
    """Vision model output."""

    analysis: str
    model: str | None = None
