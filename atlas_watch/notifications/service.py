"""
Notification service: filtered creation plus the read/update operations
the dashboard uses (list, mark read, dismiss, preferences, cleanup, broadcast).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..config import Settings, get_settings
from ..database import Database
from ..schemas import NotificationCandidate, NotificationPreferences, NotificationRecord
from .filters import current_hhmm, should_deliver

logger = logging.getLogger(__name__)


class NotificationService:
    """Per-user notifications backed by the database."""

    def __init__(self, db: Database, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()

    def _now_hhmm(self) -> str:
        return current_hhmm(self.settings.notification_timezone)

    def create_notification(self, candidate: NotificationCandidate, now: Optional[str] = None) -> Optional[int]:
        """Store a notification if the user's preferences accept it.

        Every accepted call creates a new row. Returns its id, or None when
        filtered out or the store is unavailable.
        """
        prefs = self.db.get_preferences(candidate.user_id)
        if not should_deliver(candidate, prefs, now=now or self._now_hhmm()):
            logger.info(f"[Notify] Filtered {candidate.type.value} notification for user {candidate.user_id}")
            return None

        expires_at = None
        if candidate.expires_in:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=candidate.expires_in)

        notification_id = self.db.insert_notification(candidate, expires_at=expires_at)
        if notification_id is not None:
            logger.info(f"[Notify] Created notification {notification_id} for user {candidate.user_id}")
        return notification_id

    def list_notifications(self, user_id: int, limit: Optional[int] = None,
                           unread_only: bool = False) -> List[NotificationRecord]:
        limit = limit or self.settings.notification_default_limit
        rows = self.db.get_notifications(user_id, limit=limit, unread_only=unread_only)
        return [NotificationRecord(**row) for row in rows]

    def mark_read(self, notification_id: int) -> bool:
        return self.db.set_notification_flag(notification_id, "is_read")

    def dismiss(self, notification_id: int) -> bool:
        return self.db.set_notification_flag(notification_id, "is_dismissed")

    def get_preferences(self, user_id: int) -> NotificationPreferences:
        """Stored preferences, or the defaults a new row would get."""
        return self.db.get_preferences(user_id) or NotificationPreferences(user_id=user_id)

    def update_preferences(self, preferences: NotificationPreferences) -> bool:
        ok = self.db.upsert_preferences(preferences)
        if ok:
            logger.info(f"[Notify] Saved preferences for user {preferences.user_id}")
        return ok

    def cleanup_expired(self) -> int:
        removed = self.db.delete_expired_notifications()
        if removed:
            logger.info(f"[Notify] Removed {removed} expired notifications")
        return removed

    def broadcast(self, candidate: NotificationCandidate) -> int:
        """Send a copy of candidate to every known user; returns how many were delivered."""
        delivered = 0
        for user_id in self.db.get_known_user_ids():
            personal = candidate.model_copy(update={"user_id": user_id})
            if self.create_notification(personal) is not None:
                delivered += 1
        logger.info(f"[Notify] Broadcast delivered to {delivered} users")
        return delivered
