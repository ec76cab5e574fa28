"""Quiz routes: authoring, generation, attempts and scoring."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from eduvoice.api.deps import CurrentUser, Generator, Store, require_role, verify_ownership_or_404
from eduvoice.db.models import Quiz, User, UserRole
from eduvoice.schemas.quizzes import (
    QuizAttemptListResponse,
    QuizAttemptRead,
    QuizAttemptRequest,
    QuizAttemptResponse,
    QuizCreate,
    QuizGenerateRequest,
    QuizListResponse,
    QuizQuestion,
    QuizRead,
)
from eduvoice.services import load_owned_materials, score_attempt
from eduvoice.storage import Storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quizzes", tags=["quizzes"])
attempts_router = APIRouter(prefix="/quiz-attempts", tags=["quizzes"])


async def _owned_quiz(storage: Storage, quiz_id: UUID, user: User) -> Quiz:
    quiz = await storage.get_quiz(quiz_id)
    verify_ownership_or_404(quiz, user, "Quiz not found")
    return quiz


@router.get("", response_model=QuizListResponse)
async def list_quizzes(current_user: CurrentUser, storage: Store) -> QuizListResponse:
    """List the user's quizzes, newest first."""
    quizzes = await storage.get_quizzes_by_user(current_user.id)
    return QuizListResponse(
        quizzes=[QuizRead.model_validate(q) for q in quizzes],
        total=len(quizzes),
    )


@router.post(
    "",
    response_model=QuizRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(UserRole.TEACHER.value))],
)
async def create_quiz(
    data: QuizCreate,
    current_user: CurrentUser,
    storage: Store,
) -> QuizRead:
    """Save a hand-authored quiz. Teachers only."""
    quiz = await storage.create_quiz(
        user_id=current_user.id,
        title=data.title,
        questions=[q.model_dump() for q in data.questions],
        difficulty=data.difficulty,
        material_ids=[str(i) for i in data.material_ids] if data.material_ids is not None else None,
    )
    logger.info("Teacher %s created quiz %s (%d questions)", current_user.id, quiz.id, len(data.questions))
    return QuizRead.model_validate(quiz)


@router.post("/generate", response_model=QuizRead, status_code=status.HTTP_201_CREATED)
async def generate_quiz(
    data: QuizGenerateRequest,
    current_user: CurrentUser,
    storage: Store,
    generator: Generator,
) -> QuizRead:
    """
    Generate a quiz from the listed materials.

    Questions are validated before anything is stored; a malformed reply
    fails the request.
    """
    materials = await load_owned_materials(storage, current_user.id, data.material_ids)
    questions = await generator.quiz(
        data.topic,
        materials,
        difficulty=data.difficulty,
        num_questions=data.num_questions,
    )

    quiz = await storage.create_quiz(
        user_id=current_user.id,
        title=f"{data.topic} - Quiz",
        questions=[q.model_dump() for q in questions],
        difficulty=data.difficulty,
        material_ids=[str(i) for i in data.material_ids],
    )
    return QuizRead.model_validate(quiz)


@router.get("/{quiz_id}", response_model=QuizRead)
async def get_quiz(quiz_id: UUID, current_user: CurrentUser, storage: Store) -> QuizRead:
    """Get a specific quiz by ID."""
    quiz = await _owned_quiz(storage, quiz_id, current_user)
    return QuizRead.model_validate(quiz)


@router.delete("/{quiz_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quiz(quiz_id: UUID, current_user: CurrentUser, storage: Store) -> None:
    """Delete a quiz and all attempts on it."""
    await _owned_quiz(storage, quiz_id, current_user)
    await storage.delete_quiz(quiz_id)


# =============================================================================
# ATTEMPTS
# =============================================================================


@router.post(
    "/{quiz_id}/attempt",
    response_model=QuizAttemptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_attempt(
    quiz_id: UUID,
    data: QuizAttemptRequest,
    current_user: CurrentUser,
    storage: Store,
) -> QuizAttemptResponse:
    """
    Score submitted answers and record the attempt.

    Each answer is compared by exact string match; missing answers are wrong.
    """
    quiz = await _owned_quiz(storage, quiz_id, current_user)
    questions = [QuizQuestion.model_validate(q) for q in quiz.questions]
    score, results = score_attempt(questions, data.answers)

    attempt = await storage.create_quiz_attempt(
        user_id=current_user.id,
        quiz_id=quiz_id,
        answers=data.answers,
        score=score,
        total_questions=len(questions),
    )
    logger.info("Attempt %s on quiz %s scored %d/%d", attempt.id, quiz_id, score, len(questions))
    return QuizAttemptResponse(attempt=QuizAttemptRead.model_validate(attempt), results=results)


@router.get("/{quiz_id}/attempts", response_model=QuizAttemptListResponse)
async def list_quiz_attempts(
    quiz_id: UUID,
    current_user: CurrentUser,
    storage: Store,
) -> QuizAttemptListResponse:
    """The current user's attempts on one quiz, newest first."""
    await _owned_quiz(storage, quiz_id, current_user)
    attempts = [
        a for a in await storage.get_quiz_attempts_by_quiz(quiz_id) if a.user_id == current_user.id
    ]
    return QuizAttemptListResponse(
        attempts=[QuizAttemptRead.model_validate(a) for a in attempts],
        total=len(attempts),
    )


@attempts_router.get("", response_model=QuizAttemptListResponse)
async def list_attempts(current_user: CurrentUser, storage: Store) -> QuizAttemptListResponse:
    """All of the current user's attempts, newest first."""
    attempts = await storage.get_quiz_attempts_by_user(current_user.id)
    return QuizAttemptListResponse(
        attempts=[QuizAttemptRead.model_validate(a) for a in attempts],
        total=len(attempts),
    )
