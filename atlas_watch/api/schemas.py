"""API response/request schemas -- consumed by the dashboard."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from atlas_watch.schemas import (
    Category, NotificationPreferences, NotificationRecord, NotificationType, Severity,
)


# -- Articles & Sources --

class ArticleResponse(BaseModel):
    id: int
    source_id: int
    title: str
    summary: Optional[str] = None
    content: Optional[str] = None
    url: str
    image_url: Optional[str] = None
    author: Optional[str] = None
    published_at: Optional[datetime] = None
    fetched_at: Optional[datetime] = None
    category: Category = Category.OTHER
    credibility_score: float = 0.5
    is_analyzed: bool = False


class SourceResponse(BaseModel):
    id: int
    name: str
    url: str = ""
    source_type: str
    country: Optional[str] = None
    credibility_score: float
    description: Optional[str] = None
    is_active: bool = True


class SourcePriorUpdate(BaseModel):
    credibility_score: float = Field(ge=0.0, le=1.0)


class AlertResponse(BaseModel):
    id: int
    article_id: Optional[int] = None
    alert_type: str
    title: str
    description: Optional[str] = None
    severity: str
    is_notified: bool = False
    created_at: Optional[datetime] = None


# -- Notifications --

class NotificationCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    message: Optional[str] = None
    type: NotificationType = NotificationType.INFO
    category: Optional[Category] = None
    severity: Optional[Severity] = None
    source_id: Optional[int] = None
    article_id: Optional[int] = None
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    expires_in: Optional[float] = Field(default=None, gt=0)


class NotificationCreateResponse(BaseModel):
    delivered: bool
    notification_id: Optional[int] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationRecord]
    total: int


class BroadcastResponse(BaseModel):
    delivered: int


class PreferencesUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    enable_toast_notifications: Optional[bool] = None
    enable_notification_center: Optional[bool] = None
    toast_duration: Optional[int] = Field(default=None, ge=0)
    enable_new_articles: Optional[bool] = None
    enable_alerts: Optional[bool] = None
    enable_contradictions: Optional[bool] = None
    enable_source_updates: Optional[bool] = None
    filter_by_category: Optional[List[Category]] = None
    filter_by_severity: Optional[List[Severity]] = None
    do_not_disturb_enabled: Optional[bool] = None
    do_not_disturb_start: Optional[str] = None
    do_not_disturb_end: Optional[str] = None

    def apply_to(self, current: NotificationPreferences) -> NotificationPreferences:
        updates = self.model_dump(exclude_unset=True)
        for key in ("filter_by_category", "filter_by_severity"):
            if key in updates:
                updates[key] = set(updates[key] or [])
        # Re-validate so HH:MM checks run on the merged record
        return NotificationPreferences(**{**current.model_dump(), **updates})


# -- Collection --

class CollectionResponse(BaseModel):
    fetched: int
    inserted: int
    duplicates: int
    failed: int
    sources_created: int
    skipped: bool


class AnalysisRunResponse(BaseModel):
    articles: int = 0
    claims: int = 0
    comparisons: int = 0
    contradictions: int = 0
    failed: int = 0
