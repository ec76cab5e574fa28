"""Pydantic schemas for conversations and messages."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from eduvoice.schemas.base import BaseSchema, CreatedMixin, IDMixin, OwnedMixin


# Request schemas
class ConversationCreateRequest(BaseModel):
    """Request to create a new conversation."""

    title: str | None = Field(None, max_length=255)


class ChatMessageRequest(BaseModel):
    """Request to send a chat message."""

    content: str = Field(..., min_length=1, max_length=10000)
    material_ids: list[UUID] | None = None
    audio_url: str | None = Field(None, max_length=2048)


# Response schemas
class MessageRead(BaseSchema, IDMixin):
    """Chat message response."""

    conversation_id: UUID
    role: str
    content: str
    audio_url: str | None = None
    material_ids: list[UUID] | None = None
    timestamp: datetime


class ConversationRead(BaseSchema, OwnedMixin, CreatedMixin):
    """Conversation response."""

    title: str


class ConversationListResponse(BaseModel):
    """List of conversations."""

    conversations: list[ConversationRead]
    total: int


class MessageListResponse(BaseModel):
    """Messages of one conversation, oldest first."""

    messages: list[MessageRead]


class ChatExchangeResponse(BaseModel):
    """The stored user message and the assistant's reply."""

    user_message: MessageRead
    assistant_message: MessageRead
