"""Quiz Platform - Services initialization."""
from app.services.auth import (
    AuthService,
    AuthenticationError,
    InvalidCredentialsError,
    AccountLockedError,
    TokenError,
)
from app.services.attempt import AttemptService
from app.services.catalog import CatalogService
from app.services.notification import NotificationService
from app.services.question_bank import QuestionBankService
from app.services.report import ReportService

__all__ = [
    "AuthService",
    "AuthenticationError",
    "InvalidCredentialsError",
    "AccountLockedError",
    "TokenError",
    "AttemptService",
    "CatalogService",
    "NotificationService",
    "QuestionBankService",
    "ReportService",
]
