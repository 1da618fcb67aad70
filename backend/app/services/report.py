"""
Quiz Platform - Report Service
Aggregates over submitted attempts for students and quiz authors
"""
import uuid
from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError
from app.core.identity import Identity
from app.models.attempt import Attempt
from app.models.question import Question
from app.models.quiz import Quiz
from app.models.user import User
from app.schemas.report import (
    AttemptLine,
    DashboardStats,
    QuizStat,
    RecentAttempt,
    StudentReport,
    TeacherReport,
    TopicStat,
)

RECENT_ATTEMPTS_LIMIT = 5


def percentage(score: int, max_score: int) -> float:
    return (score / max_score) * 100 if max_score else 0.0


def average_percentage(attempts: list[Attempt]) -> float:
    if not attempts:
        return 0.0
    total = sum(percentage(a.score, a.max_score) for a in attempts)
    return round(total / len(attempts), 2)


class ReportService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def student_report(self, identity: Identity, student_id: uuid.UUID) -> StudentReport:
        if identity.is_student and student_id != identity.user_id:
            raise ForbiddenError("Students can only view their own report")

        result = await self.db.execute(
            select(Attempt)
            .where(Attempt.student_id == student_id, Attempt.is_submitted.is_(True))
            .order_by(Attempt.submitted_at.desc())
        )
        attempts = list(result.scalars().all())

        # Topic of each answered question, taken from its first tag
        question_ids = set()
        for attempt in attempts:
            for r in attempt.answer_results or []:
                try:
                    question_ids.add(uuid.UUID(r["questionId"]))
                except ValueError:
                    continue
        topics: dict[str, str] = {}
        if question_ids:
            rows = await self.db.execute(select(Question).where(Question.id.in_(question_ids)))
            topics = {str(q.id): q.primary_topic for q in rows.scalars().all()}

        breakdown: dict[str, TopicStat] = defaultdict(TopicStat)
        for attempt in attempts:
            for r in attempt.answer_results or []:
                stat = breakdown[topics.get(r["questionId"], "General")]
                stat.total += 1
                if r.get("isCorrect"):
                    stat.correct += 1

        return StudentReport(
            student_id=student_id,
            total_attempts=len(attempts),
            avg_score=average_percentage(attempts),
            total_score=sum(a.score for a in attempts),
            total_max_score=sum(a.max_score for a in attempts),
            attempts=[
                AttemptLine(
                    attempt_id=a.id,
                    quiz_id=a.quiz_id,
                    quiz_title=a.quiz.title,
                    score=a.score,
                    max_score=a.max_score,
                    submitted_at=a.submitted_at,
                )
                for a in attempts
            ],
            topic_breakdown=dict(breakdown),
        )

    async def teacher_report(self, identity: Identity, teacher_id: uuid.UUID) -> TeacherReport:
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can view teacher reports")
        if not identity.is_admin and teacher_id != identity.user_id:
            raise ForbiddenError("Teachers can only view their own report")

        quizzes = list((await self.db.execute(
            select(Quiz).where(Quiz.creator_id == teacher_id).order_by(Quiz.created_at.desc())
        )).scalars().all())

        by_quiz: dict[uuid.UUID, list[Attempt]] = defaultdict(list)
        if quizzes:
            attempts = (await self.db.execute(
                select(Attempt).where(
                    Attempt.quiz_id.in_([q.id for q in quizzes]),
                    Attempt.is_submitted.is_(True),
                )
            )).scalars().all()
            for attempt in attempts:
                by_quiz[attempt.quiz_id].append(attempt)

        return TeacherReport(
            teacher_id=teacher_id,
            total_quizzes=len(quizzes),
            total_attempts=sum(len(v) for v in by_quiz.values()),
            quiz_stats=[
                QuizStat(
                    quiz_id=q.id,
                    title=q.title,
                    total_attempts=len(by_quiz[q.id]),
                    avg_score=average_percentage(by_quiz[q.id]),
                )
                for q in quizzes
            ],
        )

    async def dashboard_stats(self, identity: Identity) -> DashboardStats:
        """Platform-wide counts and the latest submissions, for staff."""
        if not identity.is_staff:
            raise ForbiddenError("Only teachers and admins can view dashboard stats")

        total_users = await self.db.scalar(select(func.count()).select_from(User))
        total_quizzes = await self.db.scalar(select(func.count()).select_from(Quiz))
        total_attempts = await self.db.scalar(
            select(func.count()).select_from(Attempt).where(Attempt.is_submitted.is_(True))
        )

        recent = (await self.db.execute(
            select(Attempt)
            .where(Attempt.is_submitted.is_(True))
            .order_by(Attempt.submitted_at.desc())
            .limit(RECENT_ATTEMPTS_LIMIT)
        )).scalars().all()

        return DashboardStats(
            total_users=total_users or 0,
            total_quizzes=total_quizzes or 0,
            total_attempts=total_attempts or 0,
            recent_attempts=[
                RecentAttempt(
                    attempt_id=a.id,
                    quiz_id=a.quiz_id,
                    quiz_title=a.quiz.title,
                    student_id=a.student_id,
                    student_name=a.student.name,
                    student_email=a.student.email,
                    score=a.score,
                    max_score=a.max_score,
                    submitted_at=a.submitted_at,
                )
                for a in recent
            ],
        )
