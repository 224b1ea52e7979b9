"""Notification Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    """Notification type enumeration."""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class CreateNotificationRequest(BaseModel):
    """Request schema for an admin-authored notification."""

    user_id: Optional[int] = Field(None, ge=1, description="Recipient; omit to broadcast to all users")
    title: str = Field(..., min_length=1, max_length=200, description="Notification title")
    message: str = Field(..., min_length=1, max_length=4000, description="Notification body")
    type: NotificationType = Field(NotificationType.INFO, description="Notification type")
    link: Optional[str] = Field(None, max_length=2000, description="Optional link")


class ListNotificationsRequest(BaseModel):
    """Request schema for the caller's notifications."""

    limit: int = Field(50, ge=1, le=200, description="Maximum notifications to return")


class MarkReadRequest(BaseModel):
    """Request schema for marking a notification read."""

    notification_id: int = Field(..., ge=1, description="Notification to mark read")


class Notification(BaseModel):
    """Notification response schema."""

    id: int
    user_id: Optional[int] = Field(None, description="Recipient; null for broadcasts")
    admin_id: Optional[int] = Field(None, description="Author; null for system notifications")
    title: str
    message: str
    type: NotificationType
    link: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationList(BaseModel):
    """Notification list response."""

    notifications: list[Notification]
    unread: int = Field(..., ge=0, description="Unread notifications in this page")
