"""Pydantic schemas for API request/response validation."""

from eduvoice.schemas.user import UserCreate, UserRead, UserUpdate
from eduvoice.schemas.auth import AuthResponse, LoginRequest
from eduvoice.schemas.materials import (
    ImageAnalysisRequest,
    ImageAnalysisResponse,
    MaterialListResponse,
    MaterialRead,
    YouTubeMaterialRequest,
)
from eduvoice.schemas.chat import (
    ChatExchangeResponse,
    ChatMessageRequest,
    ConversationCreateRequest,
    ConversationListResponse,
    ConversationRead,
    MessageListResponse,
    MessageRead,
)
from eduvoice.schemas.mindmaps import (
    MindMapCreate,
    MindMapGenerateRequest,
    MindMapGraph,
    MindMapListResponse,
    MindMapRead,
    MindMapUpdate,
)
from eduvoice.schemas.quizzes import (
    QuestionResult,
    QuizAttemptListResponse,
    QuizAttemptRead,
    QuizAttemptRequest,
    QuizAttemptResponse,
    QuizCreate,
    QuizGenerateRequest,
    QuizListResponse,
    QuizQuestion,
    QuizQuestionSet,
    QuizRead,
)

__all__ = [
    # User
    "UserCreate",
    "UserRead",
    "UserUpdate",
    # Auth
    "AuthResponse",
    "LoginRequest",
    # Materials
    "ImageAnalysisRequest",
    "ImageAnalysisResponse",
    "MaterialListResponse",
    "MaterialRead",
    "YouTubeMaterialRequest",
    # Chat
    "ChatExchangeResponse",
    "ChatMessageRequest",
    "ConversationCreateRequest",
    "ConversationListResponse",
    "ConversationRead",
    "MessageListResponse",
    "MessageRead",
    # Mind maps
    "MindMapCreate",
    "MindMapGenerateRequest",
    "MindMapGraph",
    "MindMapListResponse",
    "MindMapRead",
    "MindMapUpdate",
    # Quizzes
    "QuestionResult",
    "QuizAttemptListResponse",
    "QuizAttemptRead",
    "QuizAttemptRequest",
    "QuizAttemptResponse",
    "QuizCreate",
    "QuizGenerateRequest",
    "QuizListResponse",
    "QuizQuestion",
    "QuizQuestionSet",
    "QuizRead",
]
