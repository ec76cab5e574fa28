"""Relational storage backend (production) on SQLAlchemy's async ORM."""

import secrets
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

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

ModelT = TypeVar("ModelT")


class DatabaseStorage(Storage):
    """
    Storage over an async SQLAlchemy engine.

    Every call runs in its own short session and commits before returning.
    Sessions use expire_on_commit=False so returned rows stay readable after
    the session closes.
    """

    def __init__(self, engine: AsyncEngine, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.engine = engine
        self.session_factory = session_factory

    async def close(self) -> None:
        await self.engine.dispose()

    # -------------------------------------------------------------------------
    # Generic helpers
    # -------------------------------------------------------------------------

    async def _get(self, model: type[ModelT], record_id: Any) -> ModelT | None:
        async with self.session_factory() as db:
            return await db.get(model, record_id)

    async def _first(self, stmt) -> Any:
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return result.scalars().first()

    async def _all(self, stmt) -> list:
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def _add(self, record: ModelT) -> ModelT:
        async with self.session_factory() as db:
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return record

    async def _update(self, model: type[ModelT], record_id: Any, updates: dict[str, Any]) -> ModelT | None:
        async with self.session_factory() as db:
            record = await db.get(model, record_id)
            if record is None:
                return None
            for key, value in updates.items():
                setattr(record, key, value)
            await db.commit()
            await db.refresh(record)
            return record

    async def _delete(self, model: type, record_id: Any) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(delete(model).where(model.id == record_id))
            await db.commit()
            return result.rowcount > 0

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_user(self, user_id: UUID) -> User | None:
        return await self._get(User, user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return await self._first(select(User).where(User.username == username))

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._first(select(User).where(User.email == email))

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
        # Two registrations can pass the route's lookups at once; the unique indexes decide
        try:
            return await self._add(
                User(
                    username=username,
                    email=email,
                    password_hash=password_hash,
                    role=role,
                    plan=plan,
                    language=language,
                    created_at=utcnow(),
                )
            )
        except IntegrityError as e:
            raise DuplicateUserError("Username or email already registered") from e

    async def update_user(self, user_id: UUID, **updates: Any) -> User | None:
        return await self._update(User, user_id, updates)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    async def create_session(self, user_id: UUID, expires_at: datetime) -> AuthSession:
        return await self._add(
            AuthSession(
                id=secrets.token_urlsafe(32),
                user_id=user_id,
                created_at=utcnow(),
                expires_at=expires_at,
            )
        )

    async def get_session(self, session_id: str) -> AuthSession | None:
        now = utcnow()
        async with self.session_factory() as db:
            result = await db.execute(
                select(AuthSession).where(AuthSession.id == session_id, AuthSession.expires_at > now)
            )
            session = result.scalar_one_or_none()
            if session is None:
                # Drop the row if it exists but has expired
                await db.execute(delete(AuthSession).where(AuthSession.id == session_id))
                await db.commit()
            return session

    async def delete_session(self, session_id: str) -> bool:
        return await self._delete(AuthSession, session_id)

    # -------------------------------------------------------------------------
    # Materials
    # -------------------------------------------------------------------------

    async def get_material(self, material_id: UUID) -> Material | None:
        return await self._get(Material, material_id)

    async def get_materials_by_user(self, user_id: UUID) -> list[Material]:
        return await self._all(
            select(Material).where(Material.user_id == user_id).order_by(Material.uploaded_at.desc())
        )

    async def create_material(
        self,
        *,
        user_id: UUID,
        filename: str,
        type: str,
        content: str | None = None,
        file_metadata: dict[str, Any] | None = None,
    ) -> Material:
        return await self._add(
            Material(
                user_id=user_id,
                filename=filename,
                type=type,
                content=content,
                file_metadata=file_metadata,
                uploaded_at=utcnow(),
            )
        )

    async def delete_material(self, material_id: UUID) -> bool:
        return await self._delete(Material, material_id)

    # -------------------------------------------------------------------------
    # Conversations and messages
    # -------------------------------------------------------------------------

    async def get_conversation(self, conversation_id: UUID) -> Conversation | None:
        return await self._get(Conversation, conversation_id)

    async def get_conversations_by_user(self, user_id: UUID) -> list[Conversation]:
        return await self._all(
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.created_at.desc())
        )

    async def create_conversation(self, *, user_id: UUID, title: str) -> Conversation:
        return await self._add(Conversation(user_id=user_id, title=title, created_at=utcnow()))

    async def delete_conversation(self, conversation_id: UUID) -> bool:
        # Children are removed explicitly; SQLite doesn't enforce ON DELETE CASCADE by default
        async with self.session_factory() as db:
            await db.execute(delete(Message).where(Message.conversation_id == conversation_id))
            result = await db.execute(delete(Conversation).where(Conversation.id == conversation_id))
            await db.commit()
            return result.rowcount > 0

    async def get_message(self, message_id: UUID) -> Message | None:
        return await self._get(Message, message_id)

    async def get_messages_by_conversation(self, conversation_id: UUID) -> list[Message]:
        return await self._all(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.timestamp.asc())
        )

    async def create_message(
        self,
        *,
        conversation_id: UUID,
        role: str,
        content: str,
        audio_url: str | None = None,
        material_ids: list[str] | None = None,
    ) -> Message:
        return await self._add(
            Message(
                conversation_id=conversation_id,
                role=role,
                content=content,
                audio_url=audio_url,
                material_ids=material_ids,
                timestamp=utcnow(),
            )
        )

    # -------------------------------------------------------------------------
    # Mind maps
    # -------------------------------------------------------------------------

    async def get_mind_map(self, mind_map_id: UUID) -> MindMap | None:
        return await self._get(MindMap, mind_map_id)

    async def get_mind_maps_by_user(self, user_id: UUID) -> list[MindMap]:
        return await self._all(
            select(MindMap).where(MindMap.user_id == user_id).order_by(MindMap.updated_at.desc())
        )

    async def create_mind_map(
        self,
        *,
        user_id: UUID,
        title: str,
        graph: dict[str, Any],
        material_ids: list[str] | None = None,
    ) -> MindMap:
        now = utcnow()
        return await self._add(
            MindMap(
                user_id=user_id,
                title=title,
                graph=graph,
                material_ids=material_ids,
                created_at=now,
                updated_at=now,
            )
        )

    async def update_mind_map(self, mind_map_id: UUID, **updates: Any) -> MindMap | None:
        return await self._update(MindMap, mind_map_id, {**updates, "updated_at": utcnow()})

    async def delete_mind_map(self, mind_map_id: UUID) -> bool:
        return await self._delete(MindMap, mind_map_id)

    # -------------------------------------------------------------------------
    # Quizzes and attempts
    # -------------------------------------------------------------------------

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        return await self._get(Quiz, quiz_id)

    async def get_quizzes_by_user(self, user_id: UUID) -> list[Quiz]:
        return await self._all(
            select(Quiz).where(Quiz.user_id == user_id).order_by(Quiz.created_at.desc())
        )

    async def create_quiz(
        self,
        *,
        user_id: UUID,
        title: str,
        questions: list[dict[str, Any]],
        difficulty: str = "medium",
        material_ids: list[str] | None = None,
    ) -> Quiz:
        return await self._add(
            Quiz(
                user_id=user_id,
                title=title,
                questions=questions,
                difficulty=difficulty,
                material_ids=material_ids,
                created_at=utcnow(),
            )
        )

    async def delete_quiz(self, quiz_id: UUID) -> bool:
        async with self.session_factory() as db:
            await db.execute(delete(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id))
            result = await db.execute(delete(Quiz).where(Quiz.id == quiz_id))
            await db.commit()
            return result.rowcount > 0

    async def get_quiz_attempt(self, attempt_id: UUID) -> QuizAttempt | None:
        return await self._get(QuizAttempt, attempt_id)

    async def get_quiz_attempts_by_user(self, user_id: UUID) -> list[QuizAttempt]:
        return await self._all(
            select(QuizAttempt)
            .where(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.completed_at.desc())
        )

    async def get_quiz_attempts_by_quiz(self, quiz_id: UUID) -> list[QuizAttempt]:
        return await self._all(
            select(QuizAttempt)
            .where(QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.completed_at.desc())
        )

    async def create_quiz_attempt(
        self,
        *,
        user_id: UUID,
        quiz_id: UUID,
        answers: dict[str, str],
        score: int,
        total_questions: int,
    ) -> QuizAttempt:
        return await self._add(
            QuizAttempt(
                user_id=user_id,
                quiz_id=quiz_id,
                answers=answers,
                score=score,
                total_questions=total_questions,
                completed_at=utcnow(),
            )
        )
