"""
Quiz Platform - Question Schemas
"""
import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.question import Difficulty


class Choice(BaseModel):
    """One answer choice. Plain strings are accepted on input."""
    text: str
    meta: str = ""


def _coerce_choices(value: Any) -> Any:
    if isinstance(value, list):
        return [{"text": c} if isinstance(c, str) else c for c in value]
    return value


class QuestionCreate(BaseModel):
    """
    Question authoring payload.

    Choice count and correct index are checked by the question bank service,
    not here, so manual and AI-imported questions share one rule.
    """
    model_config = ConfigDict(populate_by_name=True)

    stem: Annotated[str, Field(min_length=1)]
    choices: list[Choice]
    correct_index: int = Field(alias="correctIndex")
    marks: Annotated[int, Field(ge=0)] = 1
    difficulty: Difficulty = Difficulty.MEDIUM
    topic_tags: list[str] = []
    explanation: str = ""

    @field_validator("choices", mode="before")
    @classmethod
    def normalize_choices(cls, v: Any) -> Any:
        return _coerce_choices(v)


class QuestionUpdate(BaseModel):
    """Partial update; unset fields are left alone."""
    model_config = ConfigDict(populate_by_name=True)

    stem: Annotated[str, Field(min_length=1)] | None = None
    choices: list[Choice] | None = None
    correct_index: int | None = Field(default=None, alias="correctIndex")
    marks: Annotated[int, Field(ge=0)] | None = None
    difficulty: Difficulty | None = None
    topic_tags: list[str] | None = None
    explanation: str | None = None

    @field_validator("choices", mode="before")
    @classmethod
    def normalize_choices(cls, v: Any) -> Any:
        return _coerce_choices(v)


class QuestionOut(BaseModel):
    """Full question, including the answer key. Staff only."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    quiz_id: uuid.UUID | None = Field(default=None, alias="quizId")
    source: str
    stem: str
    choices: list[Choice]
    correct_index: int = Field(alias="correctIndex")
    marks: int
    difficulty: str
    topic_tags: list[str] = []
    explanation: str = ""
    created_by: uuid.UUID = Field(alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class StudentQuestionOut(BaseModel):
    """Question as shown while taking a quiz: no answer key, no explanation."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True, extra="forbid")

    id: uuid.UUID
    stem: str
    choices: list[Choice]
    marks: int
    difficulty: str
    topic_tags: list[str] = []
