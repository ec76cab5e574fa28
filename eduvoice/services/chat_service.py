"""Tutor chat: material context building and prompt assembly."""

import logging
from collections.abc import AsyncIterator, Sequence
from uuid import UUID

from eduvoice.config import Settings
from eduvoice.db.models import Material, Message
from eduvoice.services.gateway import Completion, GatewayClient, ModelTask
from eduvoice.storage import Storage

logger = logging.getLogger(__name__)

TUTOR_PERSONA = (
    "You are EduVoice AI, a helpful educational assistant. You explain concepts clearly "
    "and can create visual mind maps. Always respond in an educational and supportive manner."
)

FALLBACK_REPLY = "I apologize, but I couldn't generate a response."


async def load_owned_materials(
    storage: Storage, user_id: UUID, material_ids: Sequence[UUID] | None
) -> list[Material]:
    """
    Fetch the listed materials that exist and belong to user_id.

    Ids are soft references: missing or foreign ids are skipped silently.
    """
    materials = []
    for material_id in dict.fromkeys(material_ids or []):
        material = await storage.get_material(material_id)
        if material is not None and material.user_id == user_id:
            materials.append(material)
    return materials


def build_material_context(materials: Sequence[Material], settings: Settings) -> str:
    """
    Join material text into one context block.

    Each material is cut at material_context_max_chars and the whole block
    stops growing at max_total_context_chars.
    """
    context_parts = []
    total_chars = 0
    max_total = settings.max_total_context_chars
    per_material = settings.material_context_max_chars

    for material in materials:
        if not material.content:
            continue
        text = material.content[:per_material]
        if len(material.content) > per_material:
            text += "\n\n[... content truncated ...]"
        part = f"{material.filename}: {text}"
        if total_chars + len(part) > max_total:
            context_parts.append("[... additional materials omitted due to size limits ...]")
            break
        context_parts.append(part)
        total_chars += len(part)

    return "\n\n".join(context_parts)


def build_system_prompt(context: str) -> str:
    prompt = TUTOR_PERSONA
    if context:
        prompt += f"\n\nContext from uploaded materials:\n{context}"
    prompt += (
        "\n\nRespond with helpful educational content. If the user asks about creating a mind map "
        "or visual representation, mention that you can help visualize the concepts on the canvas."
    )
    return prompt


def build_chat_messages(
    system_prompt: str,
    history: Sequence[Message],
    user_message: str,
    history_window: int,
) -> list[dict]:
    """System prompt, the last history_window messages, then the new user turn."""
    recent = list(history)[-history_window:] if history_window > 0 else []
    return [
        {"role": "system", "content": system_prompt},
        *({"role": m.role, "content": m.content} for m in recent),
        {"role": "user", "content": user_message},
    ]


class ChatService:
    """Generates tutor replies through the gateway."""

    def __init__(self, gateway: GatewayClient, settings: Settings) -> None:
        self.gateway = gateway
        self.settings = settings

    def _messages(self, user_message: str, history: Sequence[Message], materials: Sequence[Material]) -> list[dict]:
        context = build_material_context(materials, self.settings)
        return build_chat_messages(
            build_system_prompt(context),
            history,
            user_message,
            self.settings.chat_history_window,
        )

    async def reply(
        self,
        user_message: str,
        history: Sequence[Message],
        materials: Sequence[Material],
    ) -> Completion:
        """Full (non-streaming) tutor reply."""
        completion = await self.gateway.chat(
            self._messages(user_message, history, materials),
            task=ModelTask.CHAT,
            temperature=0.7,
            max_tokens=self.settings.llm_max_tokens,
        )
        if not completion.text.strip():
            logger.warning("Empty completion from %s, using fallback reply", completion.model)
            completion.text = FALLBACK_REPLY
        return completion

    async def stream_reply(
        self,
        user_message: str,
        history: Sequence[Message],
        materials: Sequence[Material],
    ) -> AsyncIterator[str]:
        """Stream the tutor reply as text chunks; a blank stream ends with the fallback reply."""
        has_text = False
        async for chunk in self.gateway.stream_chat(
            self._messages(user_message, history, materials),
            task=ModelTask.CHAT,
            temperature=0.7,
            max_tokens=self.settings.llm_max_tokens,
        ):
            has_text = has_text or bool(chunk.strip())
            yield chunk

        if not has_text:
            logger.warning("Empty completion stream, using fallback reply")
            yield FALLBACK_REPLY
