"""Pydantic schemas for quizzes and attempts."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from eduvoice.schemas.base import BaseSchema, CreatedMixin, MaterialRefsMixin, OwnedMixin

Difficulty = Literal["easy", "medium", "hard"]


class QuizQuestion(BaseModel):
    """
    One question.

    Accepts the camelCase keys models tend to produce (correctAnswer) as well
    as snake_case; always serializes as snake_case.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, max_length=100)
    type: Literal["multiple_choice", "true_false", "short_answer"] = "multiple_choice"
    question: str = Field(..., min_length=1, validation_alias=AliasChoices("question", "prompt"))
    options: list[str] = Field(default_factory=list)
    correct_answer: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("correct_answer", "correctAnswer")
    )
    explanation: str = ""

    @field_validator("id", "correct_answer", mode="before")
    @classmethod
    def stringify(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @model_validator(mode="after")
    def check_options(self) -> "QuizQuestion":
        if self.type == "multiple_choice" and len(self.options) < 2:
            raise ValueError(f"multiple choice question {self.id!r} needs at least two options")
        return self


def check_unique_question_ids(questions: list[QuizQuestion]) -> list[QuizQuestion]:
    ids = [q.id for q in questions]
    if len(ids) != len(set(ids)):
        raise ValueError("question ids must be unique")
    return questions


class QuizQuestionSet(BaseModel):
    """Model output for quiz generation: {"questions": [...]}."""

    questions: list[QuizQuestion] = Field(..., min_length=1)

    @model_validator(mode="before")
    @classmethod
    def fill_missing_ids(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("questions"), list):
            questions = []
            for index, item in enumerate(data["questions"], start=1):
                if isinstance(item, dict) and not item.get("id"):
                    item = {**item, "id": f"q{index}"}
                questions.append(item)
            data = {**data, "questions": questions}
        return data

    @field_validator("questions")
    @classmethod
    def unique_ids(cls, questions: list[QuizQuestion]) -> list[QuizQuestion]:
        return check_unique_question_ids(questions)


# Request schemas
class QuizCreate(BaseModel):
    """Hand-authored quiz (teachers only)."""

    title: str = Field(..., min_length=1, max_length=255)
    questions: list[QuizQuestion] = Field(..., min_length=1)
    difficulty: Difficulty = "medium"
    material_ids: list[UUID] | None = None

    @field_validator("questions")
    @classmethod
    def unique_ids(cls, questions: list[QuizQuestion]) -> list[QuizQuestion]:
        return check_unique_question_ids(questions)


class QuizGenerateRequest(BaseModel):
    """Generate a quiz from materials with the reasoning model."""

    topic: str = Field(..., min_length=1, max_length=200)
    material_ids: list[UUID] = Field(default_factory=list)
    difficulty: Difficulty = "medium"
    num_questions: int = Field(default=10, ge=1, le=50)


class QuizAttemptRequest(BaseModel):
    """Submitted answers keyed by question id."""

    answers: dict[str, str]


# Response schemas
class QuizRead(BaseSchema, OwnedMixin, CreatedMixin, MaterialRefsMixin):
    """Quiz response."""

    title: str
    difficulty: str
    questions: list[QuizQuestion]


class QuizListResponse(BaseModel):
    """List of quizzes."""

    quizzes: list[QuizRead]
    total: int


class QuizAttemptRead(BaseSchema, OwnedMixin):
    """Stored attempt."""

    quiz_id: UUID
    answers: dict[str, str]
    score: int
    total_questions: int
    completed_at: datetime


class QuestionResult(BaseModel):
    """Per-question outcome of an attempt."""

    question_id: str
    user_answer: str | None = None
    correct_answer: str
    is_correct: bool
    explanation: str = ""


class QuizAttemptResponse(BaseModel):
    """Attempt plus the per-question breakdown."""

    attempt: QuizAttemptRead
    results: list[QuestionResult]


class QuizAttemptListResponse(BaseModel):
    """List of attempts."""

    attempts: list[QuizAttemptRead]
    total: int
