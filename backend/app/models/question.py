"""
Quiz Platform - Question Model
Multiple-choice questions, either bound to a quiz or kept in the reusable bank
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

MIN_CHOICES = 2
MAX_CHOICES = 6


class QuestionSource(str, Enum):
    MANUAL = "manual"
    AI = "ai"
    IMPORT = "import"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Question(Base):
    """
    A stem with 2-6 choices and one correct choice.

    ``quiz_id`` is null for bank entries. Choices are stored as a JSON list of
    ``{"text": ..., "meta": ...}`` objects.
    """

    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    quiz_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("quizzes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    source: Mapped[str] = mapped_column(String(20), default=QuestionSource.MANUAL.value)

    stem: Mapped[str] = mapped_column(Text)
    choices: Mapped[list] = mapped_column(JSON, default=list)
    correct_index: Mapped[int] = mapped_column(Integer)
    marks: Mapped[int] = mapped_column(Integer, default=1)
    difficulty: Mapped[str] = mapped_column(String(10), default=Difficulty.MEDIUM.value)
    topic_tags: Mapped[list] = mapped_column(JSON, default=list)
    explanation: Mapped[str] = mapped_column(Text, default="")

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    @property
    def primary_topic(self) -> str:
        tags = self.topic_tags or []
        return tags[0] if tags else "General"

    def __repr__(self) -> str:
        return f"<Question {self.id} marks={self.marks}>"
