"""Quiz Platform - Models initialization."""
from app.models.user import User, RefreshToken, UserRole, STAFF_ROLES
from app.models.question import Question, QuestionSource, Difficulty, MIN_CHOICES, MAX_CHOICES
from app.models.quiz import Quiz, QuizQuestion
from app.models.attempt import Attempt, RevaluationStatus
from app.models.feedback import AIFeedback
from app.models.notification import Notification, NotificationType


__all__ = [
    # User models
    "User",
    "RefreshToken",
    "UserRole",
    "STAFF_ROLES",
    # Question bank
    "Question",
    "QuestionSource",
    "Difficulty",
    "MIN_CHOICES",
    "MAX_CHOICES",
    # Catalog
    "Quiz",
    "QuizQuestion",
    # Attempts
    "Attempt",
    "RevaluationStatus",
    "AIFeedback",
    # Notifications
    "Notification",
    "NotificationType",
]
