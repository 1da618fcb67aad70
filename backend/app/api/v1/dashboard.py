"""
Quiz Platform - Dashboard API Routes
"""
from fastapi import APIRouter

from app.api.deps import DbSession, StaffIdentity
from app.schemas.common import Envelope
from app.schemas.report import DashboardStats
from app.services.report import ReportService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "/stats",
    response_model=Envelope[DashboardStats],
    summary="Staff dashboard counts",
    description="Total users, quizzes and submitted attempts, plus the five latest submissions.",
)
async def dashboard_stats(
    identity: StaffIdentity,
    db: DbSession,
):
    stats = await ReportService(db).dashboard_stats(identity)
    return Envelope(data=stats)
