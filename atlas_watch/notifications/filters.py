"""
Notification filter engine: decides whether a candidate reaches a user.

Pure functions only; the caller supplies the preferences and the clock.
"""

import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..schemas import NotificationCandidate, NotificationPreferences, NotificationType

logger = logging.getLogger(__name__)

# Notification type → preference flag that must be on for it to be delivered
TYPE_TOGGLES = {
    NotificationType.ARTICLE_NEW: "enable_new_articles",
    NotificationType.ALERT_TRIGGERED: "enable_alerts",
    NotificationType.CONTRADICTION_FOUND: "enable_contradictions",
    NotificationType.SOURCE_UPDATE: "enable_source_updates",
}


def in_window(now: str, start: Optional[str], end: Optional[str]) -> bool:
    """Quiet-hours test on zero-padded HH:MM strings, both bounds inclusive.

    start < end is a same-day window; otherwise the window wraps past
    midnight. start == end therefore matches only that minute.
    Missing bounds mean no window.
    """
    if not start or not end:
        return False
    if start < end:
        return start <= now <= end
    return now >= start or now <= end


def current_hhmm(tz_name: str = "", now: Optional[datetime] = None) -> str:
    """Wall-clock HH:MM in tz_name (server local time when empty or unknown)."""
    tz = None
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except ZoneInfoNotFoundError:
            logger.warning(f"[Notify] Unknown timezone {tz_name!r}, using server local time")
    if now is None:
        now = datetime.now(tz) if tz else datetime.now()
    elif tz is not None and now.tzinfo is not None:
        now = now.astimezone(tz)
    return now.strftime("%H:%M")


def should_deliver(
    candidate: NotificationCandidate,
    preferences: Optional[NotificationPreferences],
    now: Optional[str] = None,
) -> bool:
    """Apply the user's preferences to a candidate; first failing gate wins.

    `now` is the local HH:MM used for quiet hours (defaults to the server clock).
    """
    if preferences is None:
        return True

    if not preferences.enable_toast_notifications and not preferences.enable_notification_center:
        return False

    if preferences.do_not_disturb_enabled:
        if in_window(now or current_hhmm(), preferences.do_not_disturb_start, preferences.do_not_disturb_end):
            return False

    toggle = TYPE_TOGGLES.get(candidate.type)
    if toggle and not getattr(preferences, toggle):
        return False

    if preferences.filter_by_category and candidate.category is not None:
        if candidate.category not in preferences.filter_by_category:
            return False

    if preferences.filter_by_severity and candidate.severity is not None:
        if candidate.severity not in preferences.filter_by_severity:
            return False

    return True
