"""
Quiz Platform - Attempt Schemas
Wire names follow the client contract (quizId, maxScore, is_submitted, ...)
"""
import uuid
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.question import QuestionOut, StudentQuestionOut
from app.schemas.quiz import QuizSummary
from app.schemas.user import UserSummary


# ============================================================================
# Requests
# ============================================================================

class StartAttemptRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quiz_id: uuid.UUID = Field(alias="quizId")


class AnswerIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Kept as a string: unknown ids are graded incorrect, not rejected
    question_id: str = Field(alias="questionId")
    selected_index: int = Field(alias="selectedIndex")
    time_taken_seconds: Annotated[int, Field(ge=0)] = Field(default=0, alias="timeTakenSeconds")


class SubmitAttemptRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answers: list[AnswerIn] = []
    start_token: str | None = Field(default=None, alias="startToken")


class RevaluationRequestIn(BaseModel):
    reason: Annotated[str, Field(max_length=2000)] | None = None


class RevaluationResponseIn(BaseModel):
    status: Literal["approved", "rejected"]
    response: Annotated[str, Field(max_length=2000)] = ""


# ============================================================================
# Embedded documents
# ============================================================================

class AnswerOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(alias="questionId")
    selected_index: int = Field(alias="selectedIndex")
    time_taken_seconds: int = Field(default=0, alias="timeTakenSeconds")


class AnswerResultOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(alias="questionId")
    is_correct: bool = Field(alias="isCorrect")


class WeakTopic(BaseModel):
    topic: str
    advice: str = ""


class AIFeedbackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    summary: str
    weak_topics: list[WeakTopic] = []
    improvement_tips: str = ""
    recommended_actions: str = ""


class RevaluationRequestOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    teacher_id: uuid.UUID | None = Field(default=None, alias="teacherId")
    reason: str
    status: str
    response: str | None = None
    requested_at: datetime = Field(alias="requestedAt")
    responded_at: datetime | None = Field(default=None, alias="respondedAt")


# ============================================================================
# Responses
# ============================================================================

class AttemptOut(BaseModel):
    """Attempt with populated quiz and student references. Never carries the start token."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    quiz_id: uuid.UUID = Field(alias="quizId")
    student_id: uuid.UUID = Field(alias="studentId")
    answers: list[AnswerOut] = []
    answer_results: list[AnswerResultOut] = Field(default_factory=list, alias="answerResults")
    score: int
    max_score: int = Field(alias="maxScore")
    is_submitted: bool
    submitted_at: datetime | None = Field(default=None, alias="submittedAt")
    ai_feedback: AIFeedbackOut | None = None
    revaluation_requests: list[RevaluationRequestOut] = Field(
        default_factory=list, alias="revaluationRequests"
    )
    created_at: datetime | None = Field(default=None, alias="createdAt")
    quiz: QuizSummary | None = None
    student: UserSummary | None = None


class StartAttemptOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt: AttemptOut
    start_token: str = Field(alias="startToken")
    quiz: QuizSummary
    questions: list[QuestionOut | StudentQuestionOut]
    duration: int


class SubmitAttemptOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt: AttemptOut
    score: int
    max_score: int = Field(alias="maxScore")
