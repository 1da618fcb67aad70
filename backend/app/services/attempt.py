"""
Quiz Platform - Attempt Service
Start, submit, grade and revaluation of quiz attempts
"""
import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.agents.feedback import FeedbackAgent
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from app.core.identity import Identity
from app.core.security import new_start_token, start_token_matches
from app.models.attempt import Attempt, RevaluationStatus
from app.models.feedback import AIFeedback
from app.models.notification import NotificationType
from app.models.question import Question
from app.models.quiz import Quiz
from app.schemas.attempt import AnswerIn
from app.services.catalog import CatalogService
from app.services.grading import grade_answers
from app.services.notification import NotificationService

logger = logging.getLogger(__name__)

DEFAULT_REVAL_REASON = "Please review my answers"
ATTEMPT_LIST_LIMIT = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StartedAttempt:
    attempt: Attempt
    start_token: str
    quiz: Quiz
    questions: list[Question]
    include_answers: bool


class AttemptService:
    """
    The attempt lifecycle.

    Submission is a compare-and-swap on ``is_submitted``; whatever happens
    after the swap commits (attempt counter, AI feedback, notification) is
    best effort and never changes the caller's result.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = CatalogService(db)
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _get(self, attempt_id: uuid.UUID, for_update: bool = False) -> Attempt:
        query = select(Attempt).where(Attempt.id == attempt_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        attempt = (await self.db.execute(query)).scalar_one_or_none()
        if attempt is None:
            raise NotFoundError("Attempt not found", code="ATTEMPT_NOT_FOUND")
        return attempt

    async def _reload(self, attempt_id: uuid.UUID) -> Attempt:
        result = await self.db.execute(
            select(Attempt).where(Attempt.id == attempt_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _open_attempt(self, quiz_id: uuid.UUID, student_id: uuid.UUID) -> Attempt | None:
        result = await self.db.execute(
            select(Attempt).where(
                Attempt.quiz_id == quiz_id,
                Attempt.student_id == student_id,
                Attempt.is_submitted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def _find_or_create_open(self, quiz: Quiz, student_id: uuid.UUID) -> Attempt:
        """
        Return the caller's unsubmitted attempt, creating it if needed.

        Two concurrent starts both try the insert; the partial unique index
        lets one win and the loser picks up the winner's row.
        """
        existing = await self._open_attempt(quiz.id, student_id)
        if existing is not None:
            return existing

        attempt = Attempt(
            id=uuid.uuid4(),
            quiz_id=quiz.id,
            student_id=student_id,
            answers=[],
            answer_results=[],
            score=0,
            max_score=quiz.total_marks,
            is_submitted=False,
            revaluation_requests=[],
        )
        try:
            async with self.db.begin_nested():
                self.db.add(attempt)
        except IntegrityError:
            existing = await self._open_attempt(quiz.id, student_id)
            if existing is None:
                raise
            logger.info("Concurrent start for quiz %s, reusing attempt %s", quiz.id, existing.id)
            return existing
        return attempt

    async def start_attempt(self, identity: Identity, quiz_id: uuid.UUID) -> StartedAttempt:
        quiz = await self.catalog.get_quiz(quiz_id)
        if not quiz.is_published:
            raise ForbiddenError("Quiz is not published", code="QUIZ_NOT_PUBLISHED")

        if identity.is_student and not quiz.allow_retake:
            submitted = await self.db.scalar(
                select(Attempt.id).where(
                    Attempt.quiz_id == quiz.id,
                    Attempt.student_id == identity.user_id,
                    Attempt.is_submitted.is_(True),
                ).limit(1)
            )
            if submitted is not None:
                raise ForbiddenError("Quiz already attempted", code="ALREADY_ATTEMPTED")

        attempt = await self._find_or_create_open(quiz, identity.user_id)

        # Rotating the token invalidates whatever an earlier start handed out
        token = new_start_token()
        attempt.start_token = token
        await self.db.flush()
        attempt = await self._reload(attempt.id)

        questions = list(quiz.questions)
        if quiz.shuffle_questions:
            random.shuffle(questions)

        logger.info("Attempt %s started on quiz %s by %s", attempt.id, quiz.id, identity.user_id)
        return StartedAttempt(
            attempt=attempt,
            start_token=token,
            quiz=quiz,
            questions=questions,
            include_answers=identity.is_staff,
        )

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    async def submit_attempt(
        self,
        identity: Identity,
        attempt_id: uuid.UUID,
        answers: list[AnswerIn],
        start_token: str | None,
        feedback_agent: FeedbackAgent,
    ) -> Attempt:
        attempt = await self._get(attempt_id)
        if attempt.student_id != identity.user_id:
            raise ForbiddenError("Not authorized to submit this attempt", code="NOT_OWNER")
        if attempt.is_submitted:
            raise ConflictError("Attempt already submitted", code="ALREADY_SUBMITTED")
        if not start_token_matches(attempt.start_token, start_token):
            raise ForbiddenError("Invalid start token", code="INVALID_START_TOKEN")

        quiz = attempt.quiz
        graded = grade_answers(
            [a.model_dump(by_alias=True) for a in answers],
            quiz.questions,
        )
        max_score = quiz.total_marks

        result = await self.db.execute(
            update(Attempt)
            .where(
                Attempt.id == attempt.id,
                Attempt.is_submitted.is_(False),
                Attempt.start_token == start_token,
            )
            .values(
                answers=graded.answers,
                answer_results=graded.answer_results,
                score=graded.score,
                max_score=max_score,
                is_submitted=True,
                submitted_at=_utcnow(),
                start_token=None,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Lost the race: either another submit won or a restart rotated the token
            submitted = await self.db.scalar(
                select(Attempt.is_submitted).where(Attempt.id == attempt.id)
            )
            if submitted:
                raise ConflictError("Attempt already submitted", code="ALREADY_SUBMITTED")
            raise ForbiddenError("Invalid start token", code="INVALID_START_TOKEN")

        # Effects below may roll back and expire loaded instances
        attempt_id, quiz_id = attempt.id, quiz.id
        await self.db.commit()
        logger.info(
            "Attempt %s submitted: %d/%d (%d of %d correct)",
            attempt_id, graded.score, max_score, graded.correct_count, len(graded.answer_results),
        )

        await self._increment_attempts_count(quiz_id)
        await self._store_feedback(attempt_id, feedback_agent)
        await self._notify_submitted(attempt_id)

        return await self._reload(attempt_id)

    async def _discard_failed_effect(self) -> None:
        await self.db.rollback()
        # The next effect reloads from fresh rows instead of expired instances
        self.db.expunge_all()

    async def _increment_attempts_count(self, quiz_id: uuid.UUID) -> None:
        try:
            await self.db.execute(
                update(Quiz)
                .where(Quiz.id == quiz_id)
                .values(attempts_count=Quiz.attempts_count + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self._discard_failed_effect()
            logger.exception("Failed to increment attempts count for quiz %s", quiz_id)

    async def _store_feedback(self, attempt_id: uuid.UUID, agent: FeedbackAgent) -> None:
        try:
            attempt = await self._reload(attempt_id)
            feedback = await agent.generate_feedback(attempt, attempt.quiz.questions)
            attempt.ai_feedback = feedback

            row = await self.db.scalar(select(AIFeedback).where(AIFeedback.attempt_id == attempt_id))
            if row is None:
                row = AIFeedback(attempt_id=attempt_id, student_id=attempt.student_id)
                self.db.add(row)
            row.summary = feedback["summary"]
            row.weak_topics = feedback["weak_topics"]
            row.improvement_tips = feedback["improvement_tips"]
            row.recommended_actions = feedback["recommended_actions"]

            await self.db.commit()
            logger.info("Stored AI feedback for attempt %s", attempt_id)
        except Exception:
            await self._discard_failed_effect()
            logger.exception("AI feedback failed for attempt %s", attempt_id)

    async def _notify_submitted(self, attempt_id: uuid.UUID) -> None:
        try:
            attempt = await self._reload(attempt_id)
            await self.notifications.create(
                user_id=attempt.student_id,
                type=NotificationType.RESULT_PUBLISHED,
                title="Quiz Submitted",
                body=(
                    f'Your quiz "{attempt.quiz.title}" has been submitted. '
                    f"Score: {attempt.score}/{attempt.max_score}"
                ),
                meta={"attemptId": str(attempt.id), "quizId": str(attempt.quiz_id)},
            )
            await self.db.commit()
        except Exception:
            await self._discard_failed_effect()
            logger.exception("Failed to create submission notification for attempt %s", attempt_id)

    # ------------------------------------------------------------------
    # Revaluation
    # ------------------------------------------------------------------

    async def request_revaluation(self, identity: Identity, attempt_id: uuid.UUID, reason: str | None) -> Attempt:
        if not identity.is_student:
            raise ForbiddenError("Only students can request revaluation", code="STUDENTS_ONLY")

        attempt = await self._get(attempt_id, for_update=True)
        if attempt.student_id != identity.user_id:
            raise ForbiddenError("Not authorized", code="NOT_OWNER")
        if not attempt.is_submitted:
            raise ConflictError("Attempt not submitted", code="NOT_SUBMITTED")

        request = {
            "id": str(uuid.uuid4()),
            "teacherId": str(attempt.quiz.creator_id),
            "reason": (reason or "").strip() or DEFAULT_REVAL_REASON,
            "status": RevaluationStatus.PENDING.value,
            "response": None,
            "requestedAt": _utcnow().isoformat(),
            "respondedAt": None,
        }
        # New list so the JSON column registers the change
        attempt.revaluation_requests = [*(attempt.revaluation_requests or []), request]
        await self.db.flush()

        logger.info("Revaluation %s requested on attempt %s", request["id"], attempt.id)
        return await self._reload(attempt.id)

    async def respond_revaluation(
        self,
        identity: Identity,
        attempt_id: uuid.UUID,
        request_id: str,
        status: str,
        response: str = "",
    ) -> Attempt:
        """Resolve a pending revaluation request. The score is left as graded."""
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can respond to revaluations")

        attempt = await self._get(attempt_id, for_update=True)
        if not (identity.is_admin or attempt.quiz.creator_id == identity.user_id):
            raise ForbiddenError("Only the quiz creator or an admin can respond")

        requests = [dict(r) for r in attempt.revaluation_requests or []]
        target = next((r for r in requests if r.get("id") == request_id), None)
        if target is None:
            raise NotFoundError("Revaluation request not found", code="REVAL_NOT_FOUND")
        if target.get("status") != RevaluationStatus.PENDING.value:
            raise ConflictError("Revaluation request already resolved", code="REVAL_RESOLVED")

        target.update(
            status=RevaluationStatus(status).value,
            response=response,
            respondedAt=_utcnow().isoformat(),
        )
        attempt.revaluation_requests = requests

        await self.notifications.create(
            user_id=attempt.student_id,
            type=NotificationType.REVAL_UPDATE,
            title="Revaluation Update",
            body=f'Your revaluation request for "{attempt.quiz.title}" was {target["status"]}.',
            meta={"attemptId": str(attempt.id), "requestId": request_id},
        )
        await self.db.flush()
        return await self._reload(attempt.id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_attempts(
        self,
        identity: Identity,
        quiz_id: uuid.UUID | None = None,
        student_id: uuid.UUID | None = None,
        limit: int = 50,
    ) -> list[Attempt]:
        """Students see only their own attempts; staff may filter by student."""
        query = select(Attempt)
        if identity.is_student:
            query = query.where(Attempt.student_id == identity.user_id)
        elif student_id:
            query = query.where(Attempt.student_id == student_id)
        if quiz_id:
            query = query.where(Attempt.quiz_id == quiz_id)

        result = await self.db.execute(
            query.order_by(Attempt.submitted_at.desc().nulls_last(), Attempt.created_at.desc())
            .limit(min(limit, ATTEMPT_LIST_LIMIT))
        )
        return list(result.scalars().all())

    async def get_attempt(self, identity: Identity, attempt_id: uuid.UUID) -> Attempt:
        attempt = await self._get(attempt_id)
        if not identity.is_staff and attempt.student_id != identity.user_id:
            raise ForbiddenError("Not authorized", code="NOT_OWNER")
        return attempt
