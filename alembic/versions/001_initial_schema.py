"""Initial schema with all tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

This migration creates the complete EduVoice database schema:
- Extensions: uuid-ossp
- Tables: users, auth_sessions, materials, conversations, messages, mind_maps, quizzes, quiz_attempts
- Indexes: per-user listing indexes (newest first) and message transcript order
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamp_column(name: str) -> sa.Column:
    return sa.Column(name, postgresql.TIMESTAMP(timezone=True), server_default=sa.text("NOW()"), nullable=False)


def _user_fk() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def upgrade() -> None:
    # ==========================================================================
    # EXTENSIONS
    # ==========================================================================
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ==========================================================================
    # USERS TABLE
    # ==========================================================================
    op.create_table(
        "users",
        _id_column(),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(20), server_default="student", nullable=False),
        sa.Column("plan", sa.String(20), server_default="free", nullable=False),
        sa.Column("language", sa.String(10), server_default="en", nullable=False),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('student', 'teacher')", name="valid_role"),
        sa.CheckConstraint("plan IN ('free', 'student_pro', 'teacher_pro')", name="valid_plan"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # ==========================================================================
    # AUTH_SESSIONS TABLE
    # ==========================================================================
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(64), nullable=False),
        _user_fk(),
        _timestamp_column("created_at"),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_auth_sessions_user_id", "auth_sessions", ["user_id"])
    op.create_index("idx_auth_sessions_expires_at", "auth_sessions", ["expires_at"])

    # ==========================================================================
    # MATERIALS TABLE
    # ==========================================================================
    op.create_table(
        "materials",
        _id_column(),
        _user_fk(),
        sa.Column("filename", sa.Text(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("file_metadata", postgresql.JSONB(), nullable=True),
        _timestamp_column("uploaded_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("type IN ('pdf', 'image', 'video', 'youtube', 'text')", name="valid_material_type"),
    )
    op.create_index("idx_materials_user_uploaded_at", "materials", ["user_id", "uploaded_at"])

    # ==========================================================================
    # CONVERSATIONS + MESSAGES TABLES
    # ==========================================================================
    op.create_table(
        "conversations",
        _id_column(),
        _user_fk(),
        sa.Column("title", sa.Text(), server_default="New Conversation", nullable=False),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_conversations_user_created_at", "conversations", ["user_id", "created_at"])

    op.create_table(
        "messages",
        _id_column(),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("audio_url", sa.Text(), nullable=True),
        sa.Column("material_ids", postgresql.JSONB(), nullable=True),
        _timestamp_column("timestamp"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversations.id"], ondelete="CASCADE"),
        sa.CheckConstraint("role IN ('user', 'assistant')", name="valid_message_role"),
    )
    op.create_index("idx_messages_conversation_timestamp", "messages", ["conversation_id", "timestamp"])

    # ==========================================================================
    # MIND_MAPS TABLE
    # ==========================================================================
    op.create_table(
        "mind_maps",
        _id_column(),
        _user_fk(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("graph", postgresql.JSONB(), nullable=False),
        sa.Column("material_ids", postgresql.JSONB(), nullable=True),
        _timestamp_column("created_at"),
        _timestamp_column("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_mind_maps_user_updated_at", "mind_maps", ["user_id", "updated_at"])

    # ==========================================================================
    # QUIZZES + QUIZ_ATTEMPTS TABLES
    # ==========================================================================
    op.create_table(
        "quizzes",
        _id_column(),
        _user_fk(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("difficulty", sa.String(10), server_default="medium", nullable=False),
        sa.Column("questions", postgresql.JSONB(), nullable=False),
        sa.Column("material_ids", postgresql.JSONB(), nullable=True),
        _timestamp_column("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("difficulty IN ('easy', 'medium', 'hard')", name="valid_difficulty"),
    )
    op.create_index("idx_quizzes_user_created_at", "quizzes", ["user_id", "created_at"])

    op.create_table(
        "quiz_attempts",
        _id_column(),
        _user_fk(),
        sa.Column("quiz_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("answers", postgresql.JSONB(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        _timestamp_column("completed_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE"),
        sa.CheckConstraint("score >= 0 AND score <= total_questions", name="valid_score"),
    )
    op.create_index("idx_quiz_attempts_user_completed_at", "quiz_attempts", ["user_id", "completed_at"])
    op.create_index("idx_quiz_attempts_quiz_id", "quiz_attempts", ["quiz_id"])


def downgrade() -> None:
    op.drop_table("quiz_attempts")
    op.drop_table("quizzes")
    op.drop_table("mind_maps")
    op.drop_table("messages")
    op.drop_table("conversations")
    op.drop_table("materials")
    op.drop_table("auth_sessions")
    op.drop_table("users")
