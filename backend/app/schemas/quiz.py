"""
Quiz Platform - Quiz Schemas
"""
import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from app.models.question import Difficulty
from app.schemas.question import QuestionCreate, QuestionOut, StudentQuestionOut


class QuizSettingsIn(BaseModel):
    """Author-editable settings. Aggregates (total_marks, attempts_count) are derived."""
    duration_minutes: Annotated[int, Field(ge=1)] | None = None
    pass_marks: Annotated[int, Field(ge=0)] | None = None
    difficulty_overall: Difficulty | None = None
    shuffle_questions: bool | None = None
    allow_retake: bool | None = None
    is_published: bool | None = None
    allowed_classes: list[str] | None = None


class QuizSettingsOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    duration_minutes: int
    total_marks: int
    pass_marks: int
    difficulty_overall: str
    shuffle_questions: bool
    is_published: bool
    scheduled_at: datetime | None = Field(default=None, alias="scheduledAt")
    allow_retake: bool
    allowed_classes: list[str] = []
    attempts_count: int


class QuizCreate(BaseModel):
    """
    Create a quiz from existing question ids, inline new questions, or both.
    Inline questions are bound to the new quiz; referenced ones stay where they are.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Annotated[str, Field(min_length=1, max_length=300)]
    description: str = ""
    question_ids: list[uuid.UUID] = Field(default_factory=list, alias="questionIds")
    questions: list[QuestionCreate] = []
    settings: QuizSettingsIn | None = None


class QuizUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Annotated[str, Field(min_length=1, max_length=300)] | None = None
    description: str | None = None
    question_ids: list[uuid.UUID] | None = Field(default=None, alias="questionIds")
    settings: QuizSettingsIn | None = None


class QuizSummary(BaseModel):
    """Quiz reference embedded in attempts."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    title: str
    creator_id: uuid.UUID = Field(alias="creatorId")
    settings: QuizSettingsOut


class QuizOut(QuizSummary):
    description: str = ""
    questions: list[QuestionOut | StudentQuestionOut] = []
    created_at: datetime | None = Field(default=None, alias="createdAt")


class QuizImportOut(BaseModel):
    """Result of generating a draft quiz from an uploaded document."""
    quiz: QuizOut
    accepted: int
    rejected: int
    message: str


def question_views(questions: list, include_answers: bool) -> list[QuestionOut | StudentQuestionOut]:
    """Render questions with or without the answer key."""
    schema = QuestionOut if include_answers else StudentQuestionOut
    return [schema.model_validate(q) for q in questions]


def quiz_to_out(quiz, include_answers: bool, questions: list | None = None) -> QuizOut:
    """Build a QuizOut, choosing the question view explicitly."""
    return QuizOut(
        id=quiz.id,
        title=quiz.title,
        creator_id=quiz.creator_id,
        settings=QuizSettingsOut.model_validate(quiz.settings),
        description=quiz.description or "",
        questions=question_views(quiz.questions if questions is None else questions, include_answers),
        created_at=quiz.created_at,
    )
