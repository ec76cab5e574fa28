"""API routes for tutor conversations with streaming support."""

import logging
from uuid import UUID

from fastapi import APIRouter, status
from sse_starlette.sse import EventSourceResponse

from eduvoice.api.deps import AppSettings, Chat, CurrentUser, Store, verify_ownership_or_404
from eduvoice.config import sanitize_error
from eduvoice.db.models import Conversation, MessageRole, User
from eduvoice.errors import GatewayError
from eduvoice.schemas.chat import (
    ChatExchangeResponse,
    ChatMessageRequest,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationRead,
    MessageListResponse,
    MessageRead,
)
from eduvoice.services import load_owned_materials
from eduvoice.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/conversations", tags=["conversations"])


# =============================================================================
# HELPERS
# =============================================================================


async def _owned_conversation(storage: Storage, conversation_id: UUID, user: User) -> Conversation:
    conversation = await storage.get_conversation(conversation_id)
    verify_ownership_or_404(conversation, user, "Conversation not found")
    return conversation


def _id_strings(ids: list[UUID] | None) -> list[str] | None:
    return [str(i) for i in ids] if ids is not None else None


# =============================================================================
# CONVERSATION MANAGEMENT
# =============================================================================


@router.get("", response_model=ConversationListResponse)
async def list_conversations(current_user: CurrentUser, storage: Store) -> ConversationListResponse:
    """List user's conversations, most recent first."""
    conversations = await storage.get_conversations_by_user(current_user.id)
    return ConversationListResponse(
        conversations=[ConversationRead.model_validate(c) for c in conversations],
        total=len(conversations),
    )


@router.post("", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    request: ConversationCreateRequest,
    current_user: CurrentUser,
    storage: Store,
) -> ConversationRead:
    """Create a new chat conversation."""
    conversation = await storage.create_conversation(
        user_id=current_user.id,
        title=request.title or "New Conversation",
    )
    return ConversationRead.model_validate(conversation)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> None:
    """Delete conversation and all its messages."""
    await _owned_conversation(storage, conversation_id, current_user)
    await storage.delete_conversation(conversation_id)


@router.get("/{conversation_id}/messages", response_model=MessageListResponse)
async def list_messages(
    conversation_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> MessageListResponse:
    """Full message history, oldest first."""
    await _owned_conversation(storage, conversation_id, current_user)
    messages = await storage.get_messages_by_conversation(conversation_id)
    return MessageListResponse(messages=[MessageRead.model_validate(m) for m in messages])


# =============================================================================
# CHAT
# =============================================================================


@router.post(
    "/{conversation_id}/messages",
    response_model=ChatExchangeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: UUID,
    request: ChatMessageRequest,
    current_user: CurrentUser,
    storage: Store,
    chat: Chat,
) -> ChatExchangeResponse:
    """
    Send a message and wait for the full tutor reply.

    The user message is stored before the model is called, so it survives a
    gateway failure. Only materials owned by the caller feed the context.
    """
    await _owned_conversation(storage, conversation_id, current_user)

    history = await storage.get_messages_by_conversation(conversation_id)
    materials = await load_owned_materials(storage, current_user.id, request.material_ids)

    user_message = await storage.create_message(
        conversation_id=conversation_id,
        role=MessageRole.USER.value,
        content=request.content,
        audio_url=request.audio_url,
        material_ids=_id_strings(request.material_ids),
    )

    completion = await chat.reply(request.content, history, materials)

    assistant_message = await storage.create_message(
        conversation_id=conversation_id,
        role=MessageRole.ASSISTANT.value,
        content=completion.text,
    )
    return ChatExchangeResponse(
        user_message=MessageRead.model_validate(user_message),
        assistant_message=MessageRead.model_validate(assistant_message),
    )


@router.post("/{conversation_id}/messages/stream")
async def stream_message(
    conversation_id: UUID,
    request: ChatMessageRequest,
    current_user: CurrentUser,
    storage: Store,
    chat: Chat,
    settings: AppSettings,
):
    """
    Send a message and stream the response using Server-Sent Events (SSE).

    Events:
    - 'message': Text chunks from the assistant
    - 'done': Streaming complete; data is the stored assistant message id
    - 'error': Error occurred
    """
    await _owned_conversation(storage, conversation_id, current_user)

    history = await storage.get_messages_by_conversation(conversation_id)
    materials = await load_owned_materials(storage, current_user.id, request.material_ids)

    await storage.create_message(
        conversation_id=conversation_id,
        role=MessageRole.USER.value,
        content=request.content,
        audio_url=request.audio_url,
        material_ids=_id_strings(request.material_ids),
    )

    async def event_generator():
        """Generate SSE events for streaming response."""
        chunks = []

        try:
            async for chunk in chat.stream_reply(request.content, history, materials):
                chunks.append(chunk)
                yield {"event": "message", "data": chunk}

            assistant_message = await storage.create_message(
                conversation_id=conversation_id,
                role=MessageRole.ASSISTANT.value,
                content="".join(chunks),
            )
            yield {"event": "done", "data": str(assistant_message.id)}

        except GatewayError as e:
            logger.exception("AI gateway failure during chat streaming")
            yield {
                "event": "error",
                "data": sanitize_error(e, settings=settings, generic_message=e.generic_message),
            }
        except Exception as e:
            logger.exception("Error during chat streaming")
            safe_msg = sanitize_error(e, settings=settings, generic_message="An error occurred during chat.")
            yield {"event": "error", "data": safe_msg}

    return EventSourceResponse(event_generator())
