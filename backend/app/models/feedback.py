"""
Quiz Platform - AI Feedback Model
Denormalized copy of an attempt's feedback for direct querying
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AIFeedback(Base):
    """One row per attempt, upserted whenever feedback is generated."""

    __tablename__ = "ai_feedback"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    attempt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("attempts.id", ondelete="CASCADE"), unique=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )

    summary: Mapped[str] = mapped_column(Text)
    weak_topics: Mapped[list] = mapped_column(JSON, default=list)
    improvement_tips: Mapped[str] = mapped_column(Text)
    recommended_actions: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
