"""
SQLAlchemy 2.0 Models for EduVoice.

Uses modern declarative syntax with Mapped[] type annotations.
All user-owned rows carry a non-null user_id. Material references held by
messages, mind maps and quizzes are soft: plain JSON lists of ids with no
foreign key behind them.

Column types are portable (Uuid, JSON with a JSONB variant, timezone-aware
DateTime) so the same models back PostgreSQL in production and SQLite in tests.
Ids and timestamps are assigned in Python by the storage layer so a record
built in memory looks exactly like one loaded from the database.
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eduvoice.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, PyEnum):
    """Account role used for role-gated routes."""

    STUDENT = "student"
    TEACHER = "teacher"


class SubscriptionPlan(str, PyEnum):
    """Subscription tier."""

    FREE = "free"
    STUDENT_PRO = "student_pro"
    TEACHER_PRO = "teacher_pro"


class MaterialType(str, PyEnum):
    """Kind of uploaded or ingested study material."""

    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    YOUTUBE = "youtube"
    TEXT = "text"


class MessageRole(str, PyEnum):
    """Role in chat conversation."""

    USER = "user"
    ASSISTANT = "assistant"


class Difficulty(str, PyEnum):
    """Quiz difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# =============================================================================
# MODELS
# =============================================================================


class User(Base):
    """Account with local username/password credentials."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.STUDENT.value)
    plan: Mapped[str] = mapped_column(String(20), nullable=False, default=SubscriptionPlan.FREE.value)
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="en")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class AuthSession(Base):
    """
    Server-side login session (session auth mode).

    The id is an opaque random string handed to the browser in a signed cookie.
    """

    __tablename__ = "auth_sessions"
    __table_args__ = (Index("idx_auth_sessions_expires_at", "expires_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Material(Base):
    """
    Uploaded or ingested study content.

    content holds the extracted text (plain text, PDF text, a vision model's
    description of an image, or a placeholder for video/YouTube).
    """

    __tablename__ = "materials"
    __table_args__ = (Index("idx_materials_user_uploaded_at", "user_id", "uploaded_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class Conversation(Base):
    """Named chat thread with the tutor."""

    __tablename__ = "conversations"
    __table_args__ = (Index("idx_conversations_user_created_at", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, default="New Conversation")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    messages: Mapped[list["Message"]] = relationship(
        "Message", back_populates="conversation", cascade="all, delete-orphan", passive_deletes=True
    )


class Message(Base):
    """Individual message in a conversation. Never modified after creation."""

    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_conversation_timestamp", "conversation_id", "timestamp"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    conversation_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # 'user' or 'assistant'
    content: Mapped[str] = mapped_column(Text, nullable=False)
    audio_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    material_ids: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    conversation: Mapped["Conversation"] = relationship("Conversation", back_populates="messages")


class MindMap(Base):
    """
    Concept graph rendered by the canvas.

    graph is {"nodes": [...], "connections": [...]}; validated before it is
    stored but otherwise opaque to the database.
    """

    __tablename__ = "mind_maps"
    __table_args__ = (Index("idx_mind_maps_user_updated_at", "user_id", "updated_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    graph: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    material_ids: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


class Quiz(Base):
    """Set of questions, generated by the model or authored by a teacher."""

    __tablename__ = "quizzes"
    __table_args__ = (Index("idx_quizzes_user_created_at", "user_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default=Difficulty.MEDIUM.value)
    questions: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False)
    material_ids: Mapped[Optional[list[str]]] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    attempts: Mapped[list["QuizAttempt"]] = relationship(
        "QuizAttempt", back_populates="quiz", cascade="all, delete-orphan", passive_deletes=True
    )


class QuizAttempt(Base):
    """Scored submission of answers to a quiz. Never modified after creation."""

    __tablename__ = "quiz_attempts"
    __table_args__ = (
        Index("idx_quiz_attempts_user_completed_at", "user_id", "completed_at"),
        Index("idx_quiz_attempts_quiz_id", "quiz_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    quiz_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False
    )
    answers: Mapped[dict[str, str]] = mapped_column(JSONType, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    # Relationships
    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="attempts")
