"""Quiz Platform - API v1 Router."""
from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.quizzes import router as quizzes_router
from app.api.v1.questions import router as questions_router
from app.api.v1.attempts import router as attempts_router
from app.api.v1.notifications import router as notifications_router
from app.api.v1.reports import router as reports_router
from app.api.v1.dashboard import router as dashboard_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(quizzes_router)
api_router.include_router(questions_router)
api_router.include_router(attempts_router)
api_router.include_router(notifications_router)
api_router.include_router(reports_router)
api_router.include_router(dashboard_router)
