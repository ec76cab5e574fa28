"""API routes package."""

from eduvoice.api.routes import (
    auth,
    conversations,
    materials,
    mindmaps,
    quizzes,
    users,
    voice,
)

__all__ = [
    "auth",
    "conversations",
    "materials",
    "mindmaps",
    "quizzes",
    "users",
    "voice",
]
