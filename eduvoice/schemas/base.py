"""Shared schema configuration and field mixins."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Read straight from ORM objects. Stored text is returned exactly as saved."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
    )


class RequestSchema(BaseModel):
    """Request bodies for short identifier-like fields; strings are trimmed on input."""

    model_config = ConfigDict(str_strip_whitespace=True)


class IDMixin(BaseModel):
    id: UUID


class OwnedMixin(IDMixin):
    """Records that belong to a single user and 404 for everyone else."""

    user_id: UUID


class CreatedMixin(BaseModel):
    created_at: datetime


class MaterialRefsMixin(BaseModel):
    """Soft references to materials. Ids may point at deleted materials."""

    material_ids: list[UUID] | None = None
