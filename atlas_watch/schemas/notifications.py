"""
Notification models.

NotificationCandidate is what a producer asks to deliver; the filter engine
decides against the recipient's NotificationPreferences. Allow-lists are
typed sets here; their JSON text form only exists inside the database layer.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Set
from pydantic import BaseModel, Field, field_validator

from .base import Category, NotificationType, Severity


class NotificationCandidate(BaseModel):
    """A notification a producer wants delivered to one user."""
    user_id: int
    title: str
    message: Optional[str] = None
    type: NotificationType = NotificationType.INFO
    category: Optional[Category] = None
    severity: Optional[Severity] = None
    source_id: Optional[int] = None
    article_id: Optional[int] = None
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    # Lifetime in seconds; None = never expires
    expires_in: Optional[float] = Field(default=None, gt=0)


class NotificationPreferences(BaseModel):
    """Per-user delivery preferences. Defaults mirror a freshly created row."""
    user_id: int
    enable_toast_notifications: bool = True
    enable_notification_center: bool = True
    toast_duration: int = 5000  # ms
    enable_new_articles: bool = True
    enable_alerts: bool = True
    enable_contradictions: bool = True
    enable_source_updates: bool = True
    # Empty set = no filtering on that dimension
    filter_by_category: Set[Category] = Field(default_factory=set)
    filter_by_severity: Set[Severity] = Field(default_factory=set)
    do_not_disturb_enabled: bool = False
    do_not_disturb_start: Optional[str] = None  # HH:MM
    do_not_disturb_end: Optional[str] = None    # HH:MM

    @field_validator("do_not_disturb_start", "do_not_disturb_end")
    @classmethod
    def validate_hhmm(cls, v):
        if v is None or v == "":
            return None
        try:
            datetime.strptime(v, "%H:%M")
        except ValueError:
            raise ValueError("time must be HH:MM")
        if len(v) != 5:
            raise ValueError("time must be zero-padded HH:MM")
        return v


class NotificationRecord(BaseModel):
    """Stored notification as returned to readers."""
    id: int
    user_id: int
    title: str
    message: Optional[str] = None
    type: NotificationType
    category: Optional[Category] = None
    severity: Severity = Severity.MEDIUM
    source_id: Optional[int] = None
    article_id: Optional[int] = None
    is_read: bool = False
    is_dismissed: bool = False
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
