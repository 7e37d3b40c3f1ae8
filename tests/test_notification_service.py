from datetime import timedelta

import pytest
from sqlalchemy import update

from atlas_watch.database import NotificationModel, NotificationPreferenceModel, utcnow
from atlas_watch.notifications import NotificationService
from atlas_watch.schemas import (
    Category, NotificationCandidate, NotificationPreferences, NotificationType, Severity,
)


@pytest.fixture
def service(db, settings):
    return NotificationService(db, settings)


def candidate(user_id=7, **overrides):
    fields = {"user_id": user_id, "title": "Contradiction found", "type": NotificationType.CONTRADICTION_FOUND}
    fields.update(overrides)
    return NotificationCandidate(**fields)


class TestCreate:
    def test_accepted_candidate_is_stored(self, service):
        nid = service.create_notification(candidate(
            category=Category.TRAJECTORY, severity=Severity.HIGH, metadata={"claims": [1, 2]},
        ))

        records = service.list_notifications(7)
        assert [r.id for r in records] == [nid]
        assert records[0].type == NotificationType.CONTRADICTION_FOUND
        assert records[0].metadata == {"claims": [1, 2]}
        assert records[0].is_read is False
        assert records[0].expires_at is None

    def test_filtered_candidate_is_not_stored(self, service, caplog):
        service.update_preferences(NotificationPreferences(user_id=7, enable_contradictions=False))

        with caplog.at_level("INFO"):
            assert service.create_notification(candidate()) is None
        assert service.list_notifications(7) == []
        assert "Filtered contradiction_found" in caplog.text

    def test_quiet_hours_use_supplied_clock(self, service):
        service.update_preferences(NotificationPreferences(
            user_id=7, do_not_disturb_enabled=True, do_not_disturb_start="22:00", do_not_disturb_end="08:00",
        ))
        assert service.create_notification(candidate(), now="23:15") is None
        assert service.create_notification(candidate(), now="12:00") is not None

    def test_each_call_creates_a_new_row(self, service):
        first = service.create_notification(candidate())
        second = service.create_notification(candidate())
        assert first != second
        assert len(service.list_notifications(7)) == 2

    def test_expires_in_sets_expiry(self, service):
        service.create_notification(candidate(expires_in=3600))
        expires_at = service.list_notifications(7)[0].expires_at
        assert expires_at is not None
        assert expires_at > utcnow() + timedelta(minutes=59)


class TestRead:
    def test_newest_first_and_limit(self, service):
        ids = []
        for i in range(3):
            ids.append(service.create_notification(candidate(title=f"n{i}")))

        assert [r.id for r in service.list_notifications(7)] == list(reversed(ids))
        assert [r.id for r in service.list_notifications(7, limit=2)] == [ids[2], ids[1]]

    def test_unread_only(self, service):
        read_id = service.create_notification(candidate(title="old"))
        unread_id = service.create_notification(candidate(title="new"))
        assert service.mark_read(read_id) is True

        assert [r.id for r in service.list_notifications(7, unread_only=True)] == [unread_id]

    def test_dismissed_are_hidden(self, service):
        nid = service.create_notification(candidate())
        assert service.dismiss(nid) is True
        assert service.list_notifications(7) == []

    def test_flags_are_idempotent(self, service):
        nid = service.create_notification(candidate())
        assert service.mark_read(nid) is True
        assert service.mark_read(nid) is True
        assert service.list_notifications(7)[0].is_read is True

    def test_unknown_notification(self, service):
        assert service.mark_read(999) is False
        assert service.dismiss(999) is False

    def test_users_are_isolated(self, service):
        service.create_notification(candidate(user_id=1))
        assert service.list_notifications(2) == []


class TestPreferences:
    def test_defaults_for_unknown_user(self, service):
        prefs = service.get_preferences(42)
        assert prefs == NotificationPreferences(user_id=42)

    def test_upsert_round_trip(self, service):
        service.update_preferences(NotificationPreferences(
            user_id=3, enable_alerts=False,
            filter_by_category={Category.TRAJECTORY, Category.DEBUNKING},
            filter_by_severity={Severity.CRITICAL},
        ))
        service.update_preferences(NotificationPreferences(
            user_id=3, enable_alerts=False, filter_by_category={Category.TRAJECTORY},
        ))

        prefs = service.get_preferences(3)
        assert prefs.enable_alerts is False
        assert prefs.filter_by_category == {Category.TRAJECTORY}
        assert prefs.filter_by_severity == set()

    def test_malformed_allow_list_means_no_filter(self, service, db, caplog):
        service.update_preferences(NotificationPreferences(user_id=5, filter_by_category={Category.TRAJECTORY}))
        with db.get_session() as session:
            session.execute(
                update(NotificationPreferenceModel)
                .where(NotificationPreferenceModel.user_id == 5)
                .values(filter_by_category="[not json", filter_by_severity='["high", "apocalyptic"]')
            )

        with caplog.at_level("WARNING"):
            prefs = service.get_preferences(5)

        assert prefs.filter_by_category == set()
        assert prefs.filter_by_severity == {Severity.HIGH}
        assert "malformed" in caplog.text
        assert service.create_notification(candidate(user_id=5, category=Category.SPECULATION)) is not None


class TestMaintenance:
    def test_cleanup_removes_only_expired(self, service, db):
        keep = service.create_notification(candidate(title="forever"))
        gone = service.create_notification(candidate(title="short", expires_in=60))
        with db.get_session() as session:
            session.execute(
                update(NotificationModel)
                .where(NotificationModel.id == gone)
                .values(expires_at=utcnow() - timedelta(minutes=1))
            )

        assert service.cleanup_expired() == 1
        assert [r.id for r in service.list_notifications(7)] == [keep]

    def test_broadcast_reaches_known_users_that_accept(self, service):
        service.update_preferences(NotificationPreferences(user_id=1))
        service.update_preferences(NotificationPreferences(user_id=2, enable_source_updates=False))
        service.create_notification(candidate(user_id=3, type=NotificationType.INFO))

        delivered = service.broadcast(NotificationCandidate(
            user_id=0, title="New source registered", type=NotificationType.SOURCE_UPDATE,
        ))

        assert delivered == 2
        assert len(service.list_notifications(1)) == 1
        assert service.list_notifications(2) == []
        assert len(service.list_notifications(3)) == 2
