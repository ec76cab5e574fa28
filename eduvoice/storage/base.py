"""
Storage interface shared by the in-memory and database backends.

Contract:
- create_* assigns the id and server-side timestamps and returns the full record
- get_* returns None (or an empty list) when nothing matches; it never raises
- delete_* returns True when a record was removed
- list operations return newest first; messages are the exception and come
  back oldest first so they read as a transcript

Ownership is NOT checked here. Routes compare user_id on the returned record
(see api.deps.verify_ownership_or_404) so the storage layer stays a plain
record store.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from eduvoice.db.models import (
    AuthSession,
    Conversation,
    Material,
    Message,
    MindMap,
    Quiz,
    QuizAttempt,
    User,
)


class DuplicateUserError(ValueError):
    """Username or email is already taken."""


class Storage(ABC):
    """Async CRUD interface over every entity."""

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_user(self, user_id: UUID) -> User | None: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> User | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: str = "student",
        plan: str = "free",
        language: str = "en",
    ) -> User:
        """Raises DuplicateUserError when the username or email is taken."""

    @abstractmethod
    async def update_user(self, user_id: UUID, **updates: Any) -> User | None: ...

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_session(self, user_id: UUID, expires_at: datetime) -> AuthSession: ...

    @abstractmethod
    async def get_session(self, session_id: str) -> AuthSession | None:
        """Return a live session; expired sessions read as absent and are removed."""

    @abstractmethod
    async def delete_session(self, session_id: str) -> bool: ...

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_material(self, material_id: UUID) -> Material | None: ...

    @abstractmethod
    async def get_materials_by_user(self, user_id: UUID) -> list[Material]: ...

    @abstractmethod
    async def create_material(
        self,
        *,
        user_id: UUID,
        filename: str,
        type: str,
        content: str | None = None,
        file_metadata: dict[str, Any] | None = None,
    ) -> Material: ...

    @abstractmethod
    async def delete_material(self, material_id: UUID) -> bool: ...

    # -------------------------------------------------------------------------
    # Conversations and messages
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_conversation(self, conversation_id: UUID) -> Conversation | None: ...

    @abstractmethod
    async def get_conversations_by_user(self, user_id: UUID) -> list[Conversation]: ...

    @abstractmethod
    async def create_conversation(self, *, user_id: UUID, title: str) -> Conversation: ...

    @abstractmethod
    async def delete_conversation(self, conversation_id: UUID) -> bool:
        """Delete a conversation together with its messages."""

    @abstractmethod
    async def get_message(self, message_id: UUID) -> Message | None: ...

    @abstractmethod
    async def get_messages_by_conversation(self, conversation_id: UUID) -> list[Message]: ...

    @abstractmethod
    async def create_message(
        self,
        *,
        conversation_id: UUID,
        role: str,
        content: str,
        audio_url: str | None = None,
        material_ids: list[str] | None = None,
    ) -> Message: ...

    # -------------------------------------------------------------------------
    # Mind maps
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_mind_map(self, mind_map_id: UUID) -> MindMap | None: ...

    @abstractmethod
    async def get_mind_maps_by_user(self, user_id: UUID) -> list[MindMap]: ...

    @abstractmethod
    async def create_mind_map(
        self,
        *,
        user_id: UUID,
        title: str,
        graph: dict[str, Any],
        material_ids: list[str] | None = None,
    ) -> MindMap: ...

    @abstractmethod
    async def update_mind_map(self, mind_map_id: UUID, **updates: Any) -> MindMap | None:
        """Apply updates and refresh updated_at."""

    @abstractmethod
    async def delete_mind_map(self, mind_map_id: UUID) -> bool: ...

    # -------------------------------------------------------------------------
    # Quizzes and attempts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_quiz(self, quiz_id: UUID) -> Quiz | None: ...

    @abstractmethod
    async def get_quizzes_by_user(self, user_id: UUID) -> list[Quiz]: ...

    @abstractmethod
    async def create_quiz(
        self,
        *,
        user_id: UUID,
        title: str,
        questions: list[dict[str, Any]],
        difficulty: str = "medium",
        material_ids: list[str] | None = None,
    ) -> Quiz: ...

    @abstractmethod
    async def delete_quiz(self, quiz_id: UUID) -> bool:
        """Delete a quiz together with its attempts."""

    @abstractmethod
    async def get_quiz_attempt(self, attempt_id: UUID) -> QuizAttempt | None: ...

    @abstractmethod
    async def get_quiz_attempts_by_user(self, user_id: UUID) -> list[QuizAttempt]: ...

    @abstractmethod
    async def get_quiz_attempts_by_quiz(self, quiz_id: UUID) -> list[QuizAttempt]: ...

    @abstractmethod
    async def create_quiz_attempt(
        self,
        *,
        user_id: UUID,
        quiz_id: UUID,
        answers: dict[str, str],
        score: int,
        total_questions: int,
    ) -> QuizAttempt: ...

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
