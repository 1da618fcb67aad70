"""
Quiz Platform - Report Schemas
"""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class TopicStat(BaseModel):
    correct: int = 0
    total: int = 0


class AttemptLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt_id: uuid.UUID = Field(alias="attemptId")
    quiz_id: uuid.UUID = Field(alias="quizId")
    quiz_title: str = Field(alias="quizTitle")
    score: int
    max_score: int = Field(alias="maxScore")
    submitted_at: datetime | None = Field(default=None, alias="submittedAt")


class StudentReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: uuid.UUID = Field(alias="studentId")
    total_attempts: int = Field(alias="totalAttempts")
    avg_score: float = Field(alias="avgScore")
    total_score: int = Field(alias="totalScore")
    total_max_score: int = Field(alias="totalMaxScore")
    attempts: list[AttemptLine] = []
    topic_breakdown: dict[str, TopicStat] = Field(default_factory=dict, alias="topicBreakdown")


class QuizStat(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    quiz_id: uuid.UUID = Field(alias="quizId")
    title: str
    total_attempts: int = Field(alias="totalAttempts")
    avg_score: float = Field(alias="avgScore")


class TeacherReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    teacher_id: uuid.UUID = Field(alias="teacherId")
    total_quizzes: int = Field(alias="totalQuizzes")
    total_attempts: int = Field(alias="totalAttempts")
    quiz_stats: list[QuizStat] = Field(default_factory=list, alias="quizStats")


class RecentAttempt(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt_id: uuid.UUID = Field(alias="attemptId")
    quiz_id: uuid.UUID = Field(alias="quizId")
    quiz_title: str = Field(alias="quizTitle")
    student_id: uuid.UUID = Field(alias="studentId")
    student_name: str = Field(alias="studentName")
    student_email: str = Field(alias="studentEmail")
    score: int
    max_score: int = Field(alias="maxScore")
    submitted_at: datetime | None = Field(default=None, alias="submittedAt")


class DashboardStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(alias="totalUsers")
    total_quizzes: int = Field(alias="totalQuizzes")
    total_attempts: int = Field(alias="totalAttempts")
    recent_attempts: list[RecentAttempt] = Field(default_factory=list, alias="recentAttempts")
