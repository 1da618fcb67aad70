"""
Quiz Platform - Notification Schemas
"""
import uuid
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: uuid.UUID
    user_id: uuid.UUID = Field(alias="userId")
    type: str
    title: str
    body: str
    is_read: bool
    # "metadata" is taken on ORM classes, so read the attribute as "meta"
    meta: dict = Field(
        default_factory=dict,
        validation_alias=AliasChoices("meta", "metadata"),
        serialization_alias="metadata",
    )
    created_at: datetime | None = Field(default=None, alias="createdAt")


class MarkReadRequest(BaseModel):
    """Omit ids to mark every unread notification as read."""
    model_config = ConfigDict(populate_by_name=True)

    notification_ids: list[uuid.UUID] | None = Field(default=None, alias="notificationIds")


class MarkReadOut(BaseModel):
    updated: int
