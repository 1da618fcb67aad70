"""
Quiz Platform - Quiz API Routes
Catalog reads, authoring, publishing and AI import
"""
import uuid
from typing import Annotated

from fastapi import APIRouter, File, Query, UploadFile, status

from app.api.deps import CurrentIdentity, DbSession, Examiner, StaffIdentity
from app.schemas.common import Envelope
from app.schemas.quiz import QuizCreate, QuizImportOut, QuizOut, QuizUpdate, quiz_to_out
from app.services.catalog import CatalogService

router = APIRouter(prefix="/quizzes", tags=["Quizzes"])


@router.get(
    "",
    response_model=Envelope[list[QuizOut]],
    summary="List quizzes",
    description="Students see published quizzes. Teachers see published quizzes, or their own with mine=true. "
                "Admins see everything.",
)
async def list_quizzes(
    identity: CurrentIdentity,
    db: DbSession,
    mine: bool = False,
    creator_id: Annotated[uuid.UUID | None, Query(alias="creatorId")] = None,
    published: bool | None = None,
    limit: Annotated[int, Query(ge=1, le=50)] = 50,
):
    quizzes = await CatalogService(db).list_quizzes(identity, mine, creator_id, published, limit)
    include_answers = identity.is_staff
    return Envelope(data=[
        quiz_to_out(q, include_answers, questions=q.questions if q.is_published or include_answers else [])
        for q in quizzes
    ])


@router.post(
    "/import",
    response_model=Envelope[QuizImportOut],
    status_code=status.HTTP_201_CREATED,
    summary="Generate a draft quiz from a document",
    description="Upload a PDF or text file. Questions are generated by the configured LLM; invalid "
                "candidates are discarded. If generation fails, an empty draft quiz is still created.",
)
async def import_quiz(
    identity: StaffIdentity,
    db: DbSession,
    examiner: Examiner,
    file: UploadFile = File(...),
):
    content = await file.read()
    quiz, accepted, rejected, message = await CatalogService(db).import_quiz(
        identity, file.filename or "upload.txt", content, examiner
    )
    return Envelope(
        data=QuizImportOut(
            quiz=quiz_to_out(quiz, include_answers=True),
            accepted=accepted,
            rejected=rejected,
            message=message,
        ),
        message=message,
    )


@router.get(
    "/{quiz_id}",
    response_model=Envelope[QuizOut],
    summary="Get a quiz",
)
async def get_quiz(
    quiz_id: uuid.UUID,
    identity: CurrentIdentity,
    db: DbSession,
):
    quiz, questions, include_answers = await CatalogService(db).get_for_viewer(identity, quiz_id)
    return Envelope(data=quiz_to_out(quiz, include_answers, questions=questions))


@router.post(
    "",
    response_model=Envelope[QuizOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create a quiz",
)
async def create_quiz(
    body: QuizCreate,
    identity: StaffIdentity,
    db: DbSession,
):
    quiz = await CatalogService(db).create_quiz(identity, body)
    return Envelope(data=quiz_to_out(quiz, include_answers=True))


@router.put(
    "/{quiz_id}",
    response_model=Envelope[QuizOut],
    summary="Update a quiz",
)
async def update_quiz(
    quiz_id: uuid.UUID,
    body: QuizUpdate,
    identity: StaffIdentity,
    db: DbSession,
):
    quiz = await CatalogService(db).update_quiz(identity, quiz_id, body)
    return Envelope(data=quiz_to_out(quiz, include_answers=True))


@router.post(
    "/{quiz_id}/publish",
    response_model=Envelope[QuizOut],
    summary="Publish a quiz",
)
async def publish_quiz(
    quiz_id: uuid.UUID,
    identity: StaffIdentity,
    db: DbSession,
):
    quiz = await CatalogService(db).publish_quiz(identity, quiz_id)
    return Envelope(data=quiz_to_out(quiz, include_answers=True))
