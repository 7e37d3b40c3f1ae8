"""User notifications: preference filtering and delivery."""

from atlas_watch.notifications.filters import in_window, should_deliver
from atlas_watch.notifications.service import NotificationService
