"""
Quiz Platform - Question Bank Service
Validation and persistence of multiple-choice questions
"""
import logging
import uuid
from typing import Any, Iterable

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from app.core.identity import Identity
from app.models.question import MAX_CHOICES, MIN_CHOICES, Question, QuestionSource
from app.models.quiz import Quiz, QuizQuestion
from app.schemas.question import QuestionCreate, QuestionUpdate

logger = logging.getLogger(__name__)

BANK_LIST_LIMIT = 100


def validate_question_fields(choices: list, correct_index: Any) -> None:
    """
    Enforce 2-6 choices and an in-range correct index.

    Raises:
        InvalidInputError: with the reason in the message.
    """
    if not isinstance(choices, list) or not MIN_CHOICES <= len(choices) <= MAX_CHOICES:
        raise InvalidInputError(f"Choices must be between {MIN_CHOICES} and {MAX_CHOICES}")
    if isinstance(correct_index, bool) or not isinstance(correct_index, int):
        raise InvalidInputError("Correct index must be an integer")
    if not 0 <= correct_index < len(choices):
        raise InvalidInputError("Correct index out of range")


def accept_candidates(candidates: Iterable[dict]) -> tuple[list[dict], int]:
    """
    Keep generated candidates that would pass manual validation.

    Candidates with an empty stem or invalid choices/index are dropped
    silently. Returns (accepted, rejected_count).
    """
    accepted: list[dict] = []
    rejected = 0
    for candidate in candidates:
        if not (candidate.get("stem") or "").strip():
            rejected += 1
            continue
        try:
            validate_question_fields(candidate.get("choices"), candidate.get("correct_index"))
        except InvalidInputError:
            rejected += 1
            continue
        accepted.append(candidate)
    return accepted, rejected


def build_question(
    data: QuestionCreate | dict,
    created_by: uuid.UUID,
    quiz_id: uuid.UUID | None = None,
    source: QuestionSource = QuestionSource.MANUAL,
) -> Question:
    """Validate and construct a Question row without adding it to a session."""
    if isinstance(data, QuestionCreate):
        data = data.model_dump()

    choices = [
        c if isinstance(c, dict) else {"text": str(c), "meta": ""}
        for c in data.get("choices") or []
    ]
    validate_question_fields(choices, data.get("correct_index"))

    difficulty = data.get("difficulty") or "medium"
    return Question(
        id=uuid.uuid4(),
        quiz_id=quiz_id,
        source=source.value,
        stem=data["stem"].strip(),
        choices=choices,
        correct_index=data["correct_index"],
        marks=data.get("marks", 1),
        difficulty=getattr(difficulty, "value", difficulty),
        topic_tags=list(data.get("topic_tags") or []),
        explanation=data.get("explanation") or "",
        created_by=created_by,
    )


class QuestionBankService:
    """Question authoring for teachers and admins."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, question_id: uuid.UUID) -> Question:
        question = await self.db.get(Question, question_id)
        if question is None:
            raise NotFoundError("Question not found")
        return question

    async def create(self, identity: Identity, data: QuestionCreate) -> Question:
        """Create a reusable bank question."""
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can create questions")

        question = build_question(data, created_by=identity.user_id)
        self.db.add(question)
        await self.db.flush()
        await self.db.refresh(question)

        logger.info("Question %s created by %s", question.id, identity.user_id)
        return question

    async def update(self, identity: Identity, question_id: uuid.UUID, data: QuestionUpdate) -> Question:
        """
        Partially update a question.

        The merged result is re-validated. Every quiz containing the
        question gets its total marks recomputed when marks change.
        """
        question = await self.get(question_id)
        if not (identity.is_admin or question.created_by == identity.user_id):
            raise ForbiddenError("Only the creator or an admin can edit this question")

        changes = data.model_dump(exclude_unset=True)
        if "choices" in changes or "correct_index" in changes:
            validate_question_fields(
                changes.get("choices", question.choices),
                changes.get("correct_index", question.correct_index),
            )

        marks_changed = "marks" in changes and changes["marks"] != question.marks
        for field, value in changes.items():
            if value is None:
                continue
            if field == "difficulty":
                value = value.value
            if field == "stem":
                value = value.strip()
            setattr(question, field, value)

        await self.db.flush()

        if marks_changed:
            result = await self.db.execute(
                select(Quiz).join(QuizQuestion).where(QuizQuestion.question_id == question.id)
            )
            for quiz in result.scalars().unique():
                quiz.recompute_total_marks()
                logger.debug("Quiz %s total marks now %d", quiz.id, quiz.total_marks)
            await self.db.flush()

        await self.db.refresh(question)
        return question

    async def list_bank(self, identity: Identity, limit: int = BANK_LIST_LIMIT) -> list[Question]:
        """The caller's own questions plus every unattached bank question, newest first."""
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can browse the question bank")

        result = await self.db.execute(
            select(Question)
            .where(or_(Question.created_by == identity.user_id, Question.quiz_id.is_(None)))
            .order_by(Question.created_at.desc())
            .limit(min(limit, BANK_LIST_LIMIT))
        )
        return list(result.scalars().all())

    async def get_many(self, question_ids: list[uuid.UUID]) -> list[Question]:
        """
        Load questions in the given order, ignoring repeats.

        Raises:
            InvalidInputError: if any id is unknown.
        """
        ordered = list(dict.fromkeys(question_ids))
        if not ordered:
            return []
        result = await self.db.execute(select(Question).where(Question.id.in_(ordered)))
        found = {q.id: q for q in result.scalars().all()}
        missing = [str(qid) for qid in ordered if qid not in found]
        if missing:
            raise InvalidInputError(f"Unknown question ids: {', '.join(missing)}")
        return [found[qid] for qid in ordered]
