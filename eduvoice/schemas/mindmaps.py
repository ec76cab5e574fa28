"""Pydantic schemas for mind maps and the graph JSON the canvas renders."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from eduvoice.schemas.base import BaseSchema, CreatedMixin, MaterialRefsMixin, OwnedMixin


def _coerce_id(value: Any) -> Any:
    # Models sometimes emit numeric ids
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class MindMapNode(BaseModel):
    """A labelled concept. x/y for the 2D canvas, position/size for the 3D one."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=500)
    type: Literal["central", "branch", "leaf"] = "branch"
    color: str | None = Field(None, max_length=32)
    x: float | None = None
    y: float | None = None
    position: list[float] | None = Field(None, min_length=3, max_length=3)
    size: float | None = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, value: Any) -> Any:
        return _coerce_id(value)


class MindMapConnection(BaseModel):
    """Directed, optionally labelled edge between two nodes."""

    model_config = ConfigDict(extra="ignore")

    source: str = Field(..., validation_alias=AliasChoices("from", "source"), serialization_alias="from")
    target: str = Field(..., validation_alias=AliasChoices("to", "target"), serialization_alias="to")
    label: str | None = Field(None, max_length=500)
    strength: float | None = None

    @field_validator("source", "target", mode="before")
    @classmethod
    def normalize_ends(cls, value: Any) -> Any:
        return _coerce_id(value)


class MindMapGraph(BaseModel):
    """Nodes plus connections; every connection must join two existing nodes."""

    nodes: list[MindMapNode] = Field(default_factory=list)
    connections: list[MindMapConnection] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_references(self) -> "MindMapGraph":
        ids = [node.id for node in self.nodes]
        if len(ids) != len(set(ids)):
            raise ValueError("node ids must be unique")
        known = set(ids)
        for connection in self.connections:
            if connection.source not in known or connection.target not in known:
                raise ValueError(
                    f"connection {connection.source!r} -> {connection.target!r} references an unknown node"
                )
        return self

    def to_json(self) -> dict[str, Any]:
        """Storage form: connection ends keyed 'from'/'to' as the canvas expects."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Request schemas
class MindMapCreate(BaseModel):
    """User-authored mind map."""

    title: str = Field(..., min_length=1, max_length=255)
    graph: MindMapGraph
    material_ids: list[UUID] | None = None


class MindMapGenerateRequest(BaseModel):
    """Generate a mind map from materials with the reasoning model."""

    topic: str = Field(..., min_length=1, max_length=200)
    material_ids: list[UUID] = Field(default_factory=list)
    layout: Literal["2d", "3d"] = "2d"


class MindMapUpdate(BaseModel):
    """Partial update. All fields optional."""

    title: str | None = Field(None, min_length=1, max_length=255)
    graph: MindMapGraph | None = None


# Response schemas
class MindMapRead(BaseSchema, OwnedMixin, CreatedMixin, MaterialRefsMixin):
    """Mind map response."""

    title: str
    graph: dict[str, Any]
    updated_at: datetime


class MindMapListResponse(BaseModel):
    """List of mind maps."""

    mind_maps: list[MindMapRead]
    total: int
