"""In-memory storage backend (development). Everything is lost on restart."""

import secrets
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from eduvoice.db.models import (
    AuthSession,
    Conversation,
    Material,
    Message,
    MindMap,
    Quiz,
    QuizAttempt,
    User,
    utcnow,
)
from eduvoice.storage.base import DuplicateUserError, Storage


def _newest_first(records, key: str) -> list:
    return sorted(records, key=lambda r: getattr(r, key), reverse=True)


class MemoryStorage(Storage):
    """Dict-backed storage holding transient ORM instances."""

    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}
        self.sessions: dict[str, AuthSession] = {}
        self.materials: dict[UUID, Material] = {}
        self.conversations: dict[UUID, Conversation] = {}
        self.messages: dict[UUID, Message] = {}
        self.mind_maps: dict[UUID, MindMap] = {}
        self.quizzes: dict[UUID, Quiz] = {}
        self.quiz_attempts: dict[UUID, QuizAttempt] = {}

    # Users

    async def get_user(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return next((u for u in self.users.values() if u.username == username), None)

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email), None)

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
        if any(u.username == username or u.email == email for u in self.users.values()):
            raise DuplicateUserError("Username or email already registered")
        user = User(
            id=uuid4(),
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            plan=plan,
            language=language,
            created_at=utcnow(),
        )
        self.users[user.id] = user
        return user

    async def update_user(self, user_id: UUID, **updates: Any) -> User | None:
        user = self.users.get(user_id)
        if user is None:
            return None
        for key, value in updates.items():
            setattr(user, key, value)
        return user

    # Sessions

    async def create_session(self, user_id: UUID, expires_at: datetime) -> AuthSession:
        session = AuthSession(
            id=secrets.token_urlsafe(32),
            user_id=user_id,
            created_at=utcnow(),
            expires_at=expires_at,
        )
        self.sessions[session.id] = session
        return session

    async def get_session(self, session_id: str) -> AuthSession | None:
        session = self.sessions.get(session_id)
        if session is None:
            return None
        if session.expires_at <= utcnow():
            del self.sessions[session_id]
            return None
        return session

    async def delete_session(self, session_id: str) -> bool:
        return self.sessions.pop(session_id, None) is not None

    # Materials

    async def get_material(self, material_id: UUID) -> Material | None:
        return self.materials.get(material_id)

    async def get_materials_by_user(self, user_id: UUID) -> list[Material]:
        owned = [m for m in self.materials.values() if m.user_id == user_id]
        return _newest_first(owned, "uploaded_at")

    async def create_material(
        self,
        *,
        user_id: UUID,
        filename: str,
        type: str,
        content: str | None = None,
        file_metadata: dict[str, Any] | None = None,
    ) -> Material:
        material = Material(
            id=uuid4(),
            user_id=user_id,
            filename=filename,
            type=type,
            content=content,
            file_metadata=file_metadata,
            uploaded_at=utcnow(),
        )
        self.materials[material.id] = material
        return material

    async def delete_material(self, material_id: UUID) -> bool:
        return self.materials.pop(material_id, None) is not None

    # Conversations and messages

    async def get_conversation(self, conversation_id: UUID) -> Conversation | None:
        return self.conversations.get(conversation_id)

    async def get_conversations_by_user(self, user_id: UUID) -> list[Conversation]:
        owned = [c for c in self.conversations.values() if c.user_id == user_id]
        return _newest_first(owned, "created_at")

    async def create_conversation(self, *, user_id: UUID, title: str) -> Conversation:
        conversation = Conversation(id=uuid4(), user_id=user_id, title=title, created_at=utcnow())
        self.conversations[conversation.id] = conversation
        return conversation

    async def delete_conversation(self, conversation_id: UUID) -> bool:
        if self.conversations.pop(conversation_id, None) is None:
            return False
        for message_id in [m.id for m in self.messages.values() if m.conversation_id == conversation_id]:
            del self.messages[message_id]
        return True

    async def get_message(self, message_id: UUID) -> Message | None:
        return self.messages.get(message_id)

    async def get_messages_by_conversation(self, conversation_id: UUID) -> list[Message]:
        # sorted() is stable, so equal timestamps keep insertion order
        thread = [m for m in self.messages.values() if m.conversation_id == conversation_id]
        return sorted(thread, key=lambda m: m.timestamp)

    async def create_message(
        self,
        *,
        conversation_id: UUID,
        role: str,
        content: str,
        audio_url: str | None = None,
        material_ids: list[str] | None = None,
    ) -> Message:
        message = Message(
            id=uuid4(),
            conversation_id=conversation_id,
            role=role,
            content=content,
            audio_url=audio_url,
            material_ids=material_ids,
            timestamp=utcnow(),
        )
        self.messages[message.id] = message
        return message

    # Mind maps

    async def get_mind_map(self, mind_map_id: UUID) -> MindMap | None:
        return self.mind_maps.get(mind_map_id)

    async def get_mind_maps_by_user(self, user_id: UUID) -> list[MindMap]:
        owned = [m for m in self.mind_maps.values() if m.user_id == user_id]
        return _newest_first(owned, "updated_at")

    async def create_mind_map(
        self,
        *,
        user_id: UUID,
        title: str,
        graph: dict[str, Any],
        material_ids: list[str] | None = None,
    ) -> MindMap:
        now = utcnow()
        mind_map = MindMap(
            id=uuid4(),
            user_id=user_id,
            title=title,
            graph=graph,
            material_ids=material_ids,
            created_at=now,
            updated_at=now,
        )
        self.mind_maps[mind_map.id] = mind_map
        return mind_map

    async def update_mind_map(self, mind_map_id: UUID, **updates: Any) -> MindMap | None:
        mind_map = self.mind_maps.get(mind_map_id)
        if mind_map is None:
            return None
        for key, value in updates.items():
            setattr(mind_map, key, value)
        mind_map.updated_at = utcnow()
        return mind_map

    async def delete_mind_map(self, mind_map_id: UUID) -> bool:
        return self.mind_maps.pop(mind_map_id, None) is not None

    # Quizzes and attempts

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        return self.quizzes.get(quiz_id)

    async def get_quizzes_by_user(self, user_id: UUID) -> list[Quiz]:
        owned = [q for q in self.quizzes.values() if q.user_id == user_id]
        return _newest_first(owned, "created_at")

    async def create_quiz(
        self,
        *,
        user_id: UUID,
        title: str,
        questions: list[dict[str, Any]],
        difficulty: str = "medium",
        material_ids: list[str] | None = None,
    ) -> Quiz:
        quiz = Quiz(
            id=uuid4(),
            user_id=user_id,
            title=title,
            questions=questions,
            difficulty=difficulty,
            material_ids=material_ids,
            created_at=utcnow(),
        )
        self.quizzes[quiz.id] = quiz
        return quiz

    async def delete_quiz(self, quiz_id: UUID) -> bool:
        if self.quizzes.pop(quiz_id, None) is None:
            return False
        for attempt_id in [a.id for a in self.quiz_attempts.values() if a.quiz_id == quiz_id]:
            del self.quiz_attempts[attempt_id]
        return True

    async def get_quiz_attempt(self, attempt_id: UUID) -> QuizAttempt | None:
        return self.quiz_attempts.get(attempt_id)

    async def get_quiz_attempts_by_user(self, user_id: UUID) -> list[QuizAttempt]:
        owned = [a for a in self.quiz_attempts.values() if a.user_id == user_id]
        return _newest_first(owned, "completed_at")

    async def get_quiz_attempts_by_quiz(self, quiz_id: UUID) -> list[QuizAttempt]:
        attempts = [a for a in self.quiz_attempts.values() if a.quiz_id == quiz_id]
        return _newest_first(attempts, "completed_at")

    async def create_quiz_attempt(
        self,
        *,
        user_id: UUID,
        quiz_id: UUID,
        answers: dict[str, str],
        score: int,
        total_questions: int,
    ) -> QuizAttempt:
        attempt = QuizAttempt(
            id=uuid4(),
            user_id=user_id,
            quiz_id=quiz_id,
            answers=answers,
            score=score,
            total_questions=total_questions,
            completed_at=utcnow(),
        )
        self.quiz_attempts[attempt.id] = attempt
        return attempt
