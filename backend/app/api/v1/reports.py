"""
Quiz Platform - Report API Routes
"""
import uuid

from fastapi import APIRouter

from app.api.deps import CurrentIdentity, DbSession
from app.core.exceptions import InvalidInputError
from app.core.identity import Identity
from app.schemas.common import Envelope
from app.schemas.report import StudentReport, TeacherReport
from app.services.report import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


def resolve_user_id(value: str, identity: Identity) -> uuid.UUID:
    """Accept a user id or the literal "me"."""
    if value == "me":
        return identity.user_id
    try:
        return uuid.UUID(value)
    except ValueError:
        raise InvalidInputError(f"Invalid user id '{value}'")


@router.get(
    "/student/{student_id}",
    response_model=Envelope[StudentReport],
    summary="Student performance report",
    description="Use 'me' for the caller. Students may only view their own report.",
)
async def student_report(
    student_id: str,
    identity: CurrentIdentity,
    db: DbSession,
):
    report = await ReportService(db).student_report(identity, resolve_user_id(student_id, identity))
    return Envelope(data=report)


@router.get(
    "/teacher/{teacher_id}",
    response_model=Envelope[TeacherReport],
    summary="Quiz author analytics",
)
async def teacher_report(
    teacher_id: str,
    identity: CurrentIdentity,
    db: DbSession,
):
    report = await ReportService(db).teacher_report(identity, resolve_user_id(teacher_id, identity))
    return Envelope(data=report)
