"""
Quiz Platform - Attempt API Routes
Start, submit, review and revaluation of quiz attempts
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Query

from app.api.deps import CurrentIdentity, DbSession, Feedback
from app.schemas.attempt import (
    AttemptOut,
    RevaluationRequestIn,
    RevaluationResponseIn,
    StartAttemptOut,
    StartAttemptRequest,
    SubmitAttemptOut,
    SubmitAttemptRequest,
)
from app.schemas.common import Envelope
from app.schemas.quiz import QuizSummary, question_views
from app.services.attempt import AttemptService

router = APIRouter(prefix="/attempts", tags=["Attempts"])


@router.get(
    "",
    response_model=Envelope[list[AttemptOut]],
    summary="List attempts",
    description="Students see their own attempts; teachers and admins may filter by student and quiz.",
)
async def list_attempts(
    identity: CurrentIdentity,
    db: DbSession,
    quiz_id: Annotated[uuid.UUID | None, Query(alias="quizId")] = None,
    student_id: Annotated[uuid.UUID | None, Query(alias="studentId")] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
):
    attempts = await AttemptService(db).list_attempts(identity, quiz_id, student_id, limit)
    return Envelope(data=[AttemptOut.model_validate(a) for a in attempts])


@router.post(
    "/start",
    response_model=Envelope[StartAttemptOut],
    summary="Start or resume an attempt",
    description="Returns the open attempt, a fresh start token (any earlier token stops working), "
                "the questions and the duration in minutes.",
)
async def start_attempt(
    body: StartAttemptRequest,
    identity: CurrentIdentity,
    db: DbSession,
):
    started = await AttemptService(db).start_attempt(identity, body.quiz_id)
    return Envelope(data=StartAttemptOut(
        attempt=AttemptOut.model_validate(started.attempt),
        start_token=started.start_token,
        quiz=QuizSummary.model_validate(started.quiz),
        questions=question_views(started.questions, started.include_answers),
        duration=started.quiz.duration_minutes,
    ))


@router.get(
    "/{attempt_id}",
    response_model=Envelope[AttemptOut],
    summary="Get an attempt",
)
async def get_attempt(
    attempt_id: uuid.UUID,
    identity: CurrentIdentity,
    db: DbSession,
):
    attempt = await AttemptService(db).get_attempt(identity, attempt_id)
    return Envelope(data=AttemptOut.model_validate(attempt))


@router.post(
    "/{attempt_id}/submit",
    response_model=Envelope[SubmitAttemptOut],
    summary="Submit answers",
    description="Grades the attempt once. A second submission, or one with a stale start token, is rejected.",
)
async def submit_attempt(
    attempt_id: uuid.UUID,
    body: SubmitAttemptRequest,
    identity: CurrentIdentity,
    db: DbSession,
    feedback_agent: Feedback,
):
    attempt = await AttemptService(db).submit_attempt(
        identity,
        attempt_id,
        body.answers,
        body.start_token,
        feedback_agent,
    )
    return Envelope(data=SubmitAttemptOut(
        attempt=AttemptOut.model_validate(attempt),
        score=attempt.score,
        max_score=attempt.max_score,
    ))


@router.post(
    "/{attempt_id}/reval",
    response_model=Envelope[AttemptOut],
    summary="Request revaluation",
)
async def request_revaluation(
    attempt_id: uuid.UUID,
    identity: CurrentIdentity,
    db: DbSession,
    body: RevaluationRequestIn | None = None,
):
    reason = body.reason if body else None
    attempt = await AttemptService(db).request_revaluation(identity, attempt_id, reason)
    return Envelope(data=AttemptOut.model_validate(attempt))


@router.post(
    "/{attempt_id}/reval/{request_id}/respond",
    response_model=Envelope[AttemptOut],
    summary="Respond to a revaluation request",
    description="Quiz creator or admin approves or rejects a pending request. The score is not changed.",
)
async def respond_revaluation(
    attempt_id: uuid.UUID,
    request_id: str,
    body: RevaluationResponseIn,
    identity: CurrentIdentity,
    db: DbSession,
):
    attempt = await AttemptService(db).respond_revaluation(
        identity, attempt_id, request_id, body.status, body.response
    )
    return Envelope(data=AttemptOut.model_validate(attempt))
