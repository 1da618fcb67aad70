"""
Quiz Platform - Question Bank API Routes
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, Query, status

from app.api.deps import DbSession, StaffIdentity
from app.schemas.common import Envelope
from app.schemas.question import QuestionCreate, QuestionOut, QuestionUpdate
from app.services.question_bank import BANK_LIST_LIMIT, QuestionBankService

router = APIRouter(prefix="/questions", tags=["Question Bank"])


@router.get(
    "/bank",
    response_model=Envelope[list[QuestionOut]],
    summary="Browse the question bank",
    description="Your own questions plus every question not bound to a quiz, newest first.",
)
async def list_bank(
    identity: StaffIdentity,
    db: DbSession,
    limit: Annotated[int, Query(ge=1, le=BANK_LIST_LIMIT)] = BANK_LIST_LIMIT,
):
    questions = await QuestionBankService(db).list_bank(identity, limit)
    return Envelope(data=[QuestionOut.model_validate(q) for q in questions])


@router.post(
    "",
    response_model=Envelope[QuestionOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create a bank question",
)
async def create_question(
    body: QuestionCreate,
    identity: StaffIdentity,
    db: DbSession,
):
    question = await QuestionBankService(db).create(identity, body)
    return Envelope(data=QuestionOut.model_validate(question))


@router.put(
    "/{question_id}",
    response_model=Envelope[QuestionOut],
    summary="Update a question",
    description="Partial update. Quizzes containing the question have their total marks recomputed.",
)
async def update_question(
    question_id: uuid.UUID,
    body: QuestionUpdate,
    identity: StaffIdentity,
    db: DbSession,
):
    question = await QuestionBankService(db).update(identity, question_id, body)
    return Envelope(data=QuestionOut.model_validate(question))
