"""
Quiz Platform - Attempt Model
One student's run at one quiz, from start through grading and revaluation
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    false,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

if TYPE_CHECKING:
    from app.models.quiz import Quiz
    from app.models.user import User


class RevaluationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Attempt(Base):
    """
    Attempt record.

    Embedded lists are JSON:
      answers:              [{questionId, selectedIndex, timeTakenSeconds}]
      answer_results:       [{questionId, isCorrect}]
      ai_feedback:          {summary, weak_topics, improvement_tips, recommended_actions}
      revaluation_requests: [{id, teacherId, reason, status, response, requestedAt, respondedAt}]

    Once ``is_submitted`` is true only ``ai_feedback`` and
    ``revaluation_requests`` change.
    """

    __tablename__ = "attempts"
    __table_args__ = (
        Index("ix_attempts_student_submitted", "student_id", "submitted_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), index=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    answers: Mapped[list] = mapped_column(JSON, default=list)
    answer_results: Mapped[list] = mapped_column(JSON, default=list)
    score: Mapped[int] = mapped_column(Integer, default=0)
    max_score: Mapped[int] = mapped_column(Integer, default=0)

    is_submitted: Mapped[bool] = mapped_column(Boolean, default=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    start_token: Mapped[str | None] = mapped_column(String(128), nullable=True)

    ai_feedback: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    revaluation_requests: Mapped[list] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    quiz: Mapped["Quiz"] = relationship("Quiz", lazy="selectin")
    student: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Attempt {self.id} submitted={self.is_submitted} score={self.score}/{self.max_score}>"


# At most one open attempt per (quiz, student); start_attempt relies on it
Index(
    "uq_attempts_open_per_student",
    Attempt.quiz_id,
    Attempt.student_id,
    unique=True,
    postgresql_where=Attempt.is_submitted == false(),
    sqlite_where=Attempt.is_submitted == false(),
)
