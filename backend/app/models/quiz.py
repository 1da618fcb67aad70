"""
Quiz Platform - Quiz Models
Quiz definitions, their settings block and the ordered question links
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.question import Question


class QuizQuestion(Base):
    """Position of a question inside a quiz."""

    __tablename__ = "quiz_questions"

    quiz_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quizzes.id", ondelete="CASCADE"), primary_key=True
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)

    question: Mapped[Question] = relationship(Question, lazy="selectin")


class Quiz(Base):
    """
    A titled, ordered collection of questions plus its settings.

    ``total_marks`` is derived data: call ``recompute_total_marks()`` after
    touching the question set or a member question's marks.
    """

    __tablename__ = "quizzes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str] = mapped_column(Text, default="")
    creator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), index=True)

    # Settings
    duration_minutes: Mapped[int] = mapped_column(Integer, default=60)
    total_marks: Mapped[int] = mapped_column(Integer, default=0)
    pass_marks: Mapped[int] = mapped_column(Integer, default=0)
    difficulty_overall: Mapped[str] = mapped_column(String(10), default="medium")
    shuffle_questions: Mapped[bool] = mapped_column(Boolean, default=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    allow_retake: Mapped[bool] = mapped_column(Boolean, default=False)
    allowed_classes: Mapped[list] = mapped_column(JSON, default=list)
    attempts_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    question_links: Mapped[list[QuizQuestion]] = relationship(
        QuizQuestion,
        order_by=QuizQuestion.position,
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def questions(self) -> list[Question]:
        return [link.question for link in self.question_links]

    def set_questions(self, questions: list[Question]) -> None:
        """Replace the ordered question set, reusing links that survive."""
        existing = {link.question_id: link for link in self.question_links}
        self.question_links = [
            existing.get(q.id) or QuizQuestion(question=q) for q in questions
        ]
        self.question_links.reorder()

    def recompute_total_marks(self) -> int:
        self.total_marks = sum(q.marks or 0 for q in self.questions)
        return self.total_marks

    @property
    def settings(self) -> dict:
        return {
            "duration_minutes": self.duration_minutes,
            "total_marks": self.total_marks,
            "pass_marks": self.pass_marks,
            "difficulty_overall": self.difficulty_overall,
            "shuffle_questions": self.shuffle_questions,
            "is_published": self.is_published,
            "scheduledAt": self.scheduled_at,
            "allow_retake": self.allow_retake,
            "allowed_classes": list(self.allowed_classes or []),
            "attempts_count": self.attempts_count,
        }

    def __repr__(self) -> str:
        return f"<Quiz {self.title!r} published={self.is_published}>"
