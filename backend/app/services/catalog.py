"""
Quiz Platform - Quiz Catalog Service
Quiz authoring, publishing, visibility rules and AI import
"""
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.agents.examiner import ExaminerAgent
from app.core.config import settings
from app.core.exceptions import AppError, ForbiddenError, NotFoundError
from app.core.identity import Identity
from app.models.question import QuestionSource
from app.models.quiz import Quiz
from app.schemas.quiz import QuizCreate, QuizSettingsIn, QuizUpdate
from app.services.document import extract_text
from app.services.question_bank import QuestionBankService, accept_candidates, build_question

logger = logging.getLogger(__name__)

QUIZ_LIST_LIMIT = 50


def recompute_total_marks(quiz: Quiz) -> int:
    """Reset ``quiz.total_marks`` to the sum of its questions' marks."""
    return quiz.recompute_total_marks()


def apply_settings(quiz: Quiz, settings_in: QuizSettingsIn | None) -> None:
    if settings_in is None:
        return
    for field, value in settings_in.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "difficulty_overall":
            value = value.value
        setattr(quiz, field, value)
    if settings_in.is_published and quiz.scheduled_at is None:
        quiz.scheduled_at = datetime.now(timezone.utc)


class CatalogService:
    """Quiz catalog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.questions = QuestionBankService(db)

    async def get_quiz(self, quiz_id: uuid.UUID) -> Quiz:
        quiz = await self.db.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError("Quiz not found", code="QUIZ_NOT_FOUND")
        return quiz

    async def _reload(self, quiz_id: uuid.UUID) -> Quiz:
        # populate_existing re-runs the selectin loaders for the question links
        result = await self.db.execute(
            select(Quiz).where(Quiz.id == quiz_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    def _ensure_can_edit(self, identity: Identity, quiz: Quiz) -> None:
        if not (identity.is_admin or quiz.creator_id == identity.user_id):
            raise ForbiddenError("Only the quiz creator or an admin can modify this quiz")

    async def list_quizzes(
        self,
        identity: Identity,
        mine: bool = False,
        creator_id: uuid.UUID | None = None,
        published: bool | None = None,
        limit: int = QUIZ_LIST_LIMIT,
    ) -> list[Quiz]:
        """
        Role-scoped listing, newest first.

        Students see published quizzes only. Teachers see published quizzes,
        or their own when ``mine`` is set. Admins see everything and may
        filter by creator.
        """
        query = select(Quiz)
        if identity.is_student:
            query = query.where(Quiz.is_published.is_(True))
        elif identity.is_admin:
            if creator_id:
                query = query.where(Quiz.creator_id == creator_id)
        elif mine:
            query = query.where(Quiz.creator_id == identity.user_id)
        else:
            query = query.where(Quiz.is_published.is_(True))

        if published is not None and not identity.is_student:
            query = query.where(Quiz.is_published.is_(published))

        result = await self.db.execute(
            query.order_by(Quiz.created_at.desc()).limit(min(limit, QUIZ_LIST_LIMIT))
        )
        return list(result.scalars().all())

    async def get_for_viewer(self, identity: Identity, quiz_id: uuid.UUID) -> tuple[Quiz, list, bool]:
        """
        Returns (quiz, visible_questions, include_answers).

        Students never get answer keys, and get no questions at all for
        an unpublished quiz.
        """
        quiz = await self.get_quiz(quiz_id)
        if identity.is_student:
            questions = quiz.questions if quiz.is_published else []
            return quiz, questions, False
        return quiz, quiz.questions, True

    async def create_quiz(self, identity: Identity, data: QuizCreate) -> Quiz:
        """Create a quiz from bank question ids and/or inline questions."""
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can create quizzes")

        existing = await self.questions.get_many(data.question_ids)

        quiz = Quiz(
            id=uuid.uuid4(),
            title=data.title.strip(),
            description=data.description or "",
            creator_id=identity.user_id,
            question_links=[],
        )
        apply_settings(quiz, data.settings)

        inline = [
            build_question(q, created_by=identity.user_id, quiz_id=quiz.id)
            for q in data.questions
        ]

        # Bound questions reference the quiz row, so it goes in first
        self.db.add(quiz)
        await self.db.flush()
        self.db.add_all(inline)
        quiz.set_questions(existing + inline)
        recompute_total_marks(quiz)
        await self.db.flush()
        quiz = await self._reload(quiz.id)

        logger.info(
            "Quiz %s created by %s with %d questions (total %d marks)",
            quiz.id, identity.user_id, len(quiz.question_links), quiz.total_marks,
        )
        return quiz

    async def update_quiz(self, identity: Identity, quiz_id: uuid.UUID, data: QuizUpdate) -> Quiz:
        quiz = await self.get_quiz(quiz_id)
        self._ensure_can_edit(identity, quiz)

        if data.title is not None:
            quiz.title = data.title.strip()
        if data.description is not None:
            quiz.description = data.description
        if data.question_ids is not None:
            quiz.set_questions(await self.questions.get_many(data.question_ids))
            recompute_total_marks(quiz)
        apply_settings(quiz, data.settings)

        await self.db.flush()
        quiz = await self._reload(quiz.id)
        return quiz

    async def publish_quiz(self, identity: Identity, quiz_id: uuid.UUID) -> Quiz:
        quiz = await self.get_quiz(quiz_id)
        self._ensure_can_edit(identity, quiz)

        quiz.is_published = True
        quiz.scheduled_at = datetime.now(timezone.utc)
        await self.db.flush()
        quiz = await self._reload(quiz.id)

        logger.info("Quiz %s published by %s", quiz.id, identity.user_id)
        return quiz

    async def import_quiz(
        self,
        identity: Identity,
        filename: str,
        content: bytes,
        examiner: ExaminerAgent,
    ) -> tuple[Quiz, int, int, str]:
        """
        Create a draft quiz from an uploaded document.

        Generation failures do not fail the request: a draft quiz without
        questions is created and the message explains why.

        Returns:
            (quiz, accepted_count, rejected_count, message)
        """
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can import quizzes")

        text = await extract_text(filename, content)

        ai_error: AppError | None = None
        candidates: list[dict] = []
        try:
            candidates = await examiner.generate_mcqs(text, settings.IMPORT_MAX_QUESTIONS)
        except AppError as e:
            ai_error = e
            logger.error("AI question generation failed for %s: %s", filename, e.message)

        accepted, rejected = accept_candidates(candidates)

        quiz = Quiz(
            id=uuid.uuid4(),
            title=Path(filename).stem or "Imported quiz",
            description=f"AI-generated quiz from {filename}",
            creator_id=identity.user_id,
            is_published=False,
            question_links=[],
        )
        questions = [
            build_question(c, created_by=identity.user_id, quiz_id=quiz.id, source=QuestionSource.AI)
            for c in accepted
        ]
        self.db.add(quiz)
        await self.db.flush()
        self.db.add_all(questions)
        quiz.set_questions(questions)
        recompute_total_marks(quiz)
        await self.db.flush()
        quiz = await self._reload(quiz.id)

        if ai_error is not None:
            message = (
                f"AI generation failed: {ai_error.message}. A draft quiz was created "
                "without questions. You can add questions manually."
            )
        else:
            message = f"Generated {len(accepted)} questions from {filename}"
            if rejected:
                message += f" ({rejected} invalid candidates discarded)"

        logger.info("Imported quiz %s: %d accepted, %d rejected", quiz.id, len(accepted), rejected)
        return quiz, len(accepted), rejected, message
