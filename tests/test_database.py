import pytest

from atlas_watch.database import Database
from atlas_watch.schemas import (
    Category, ClaimDraft, NotificationCandidate, NotificationPreferences, SourceEntry,
)
from tests.fakes import ts


def add(db, source_id, url, published=None, category=Category.OTHER):
    return db.insert_article({
        "source_id": source_id, "title": url.rsplit("/", 1)[-1], "url": url,
        "published_at": published, "category": category,
    })


class TestSources:
    def test_ensure_source_never_overwrites(self, db):
        first = db.ensure_source(SourceEntry(name="ESA", credibility_score=0.99))
        second = db.ensure_source(SourceEntry(name="ESA", credibility_score=0.1))

        assert first["created"] is True
        assert second["created"] is False
        assert second["id"] == first["id"]
        assert db.get_source(first["id"])["credibility_score"] == 0.99

    def test_set_source_prior_clamps(self, db):
        source = db.ensure_source(SourceEntry(name="Blog"))
        assert db.set_source_prior(source["id"], 1.7) is True
        assert db.get_source(source["id"])["credibility_score"] == 1.0
        assert db.set_source_prior(999, 0.5) is False

    def test_active_sources_ordered_by_prior(self, db):
        db.ensure_source(SourceEntry(name="Low", credibility_score=0.2))
        db.ensure_source(SourceEntry(name="High", credibility_score=0.9))
        db.ensure_source(SourceEntry(name="Off", credibility_score=1.0, is_active=False))

        assert [s["name"] for s in db.get_active_sources()] == ["High", "Low"]


class TestArticles:
    def test_duplicate_url_is_rejected(self, db):
        source = db.ensure_source(SourceEntry(name="Wire"))
        assert add(db, source["id"], "https://wire.test/a") is not None
        assert add(db, source["id"], "https://wire.test/a") is None
        assert db.article_exists("https://wire.test/a")
        assert db.count_articles() == 1

    def test_newest_first_with_undated_last(self, db):
        source = db.ensure_source(SourceEntry(name="Wire"))
        add(db, source["id"], "https://wire.test/undated")
        add(db, source["id"], "https://wire.test/old", published=ts(1))
        add(db, source["id"], "https://wire.test/new", published=ts(5))

        urls = [a["url"] for a in db.get_latest_articles()]
        assert urls == ["https://wire.test/new", "https://wire.test/old", "https://wire.test/undated"]

    def test_aware_timestamps_are_stored_as_utc(self, db):
        source = db.ensure_source(SourceEntry(name="Wire"))
        article_id = add(db, source["id"], "https://wire.test/a", published=ts(3, hour=10))
        stored = db.get_article(article_id)["published_at"]
        assert stored.tzinfo is None
        assert (stored.day, stored.hour) == (3, 10)

    def test_filters(self, db):
        wire = db.ensure_source(SourceEntry(name="Wire"))
        blog = db.ensure_source(SourceEntry(name="Blog"))
        add(db, wire["id"], "https://wire.test/orbit", category=Category.TRAJECTORY)
        add(db, blog["id"], "https://blog.test/tail", category=Category.ACTIVITY)

        assert [a["url"] for a in db.get_articles_by_category(Category.ACTIVITY)] == ["https://blog.test/tail"]
        assert [a["url"] for a in db.get_articles_by_source(wire["id"])] == ["https://wire.test/orbit"]

    def test_mark_analyzed(self, db):
        source = db.ensure_source(SourceEntry(name="Wire"))
        article_id = add(db, source["id"], "https://wire.test/a")

        assert db.mark_article_analyzed(article_id) is True
        assert db.get_unanalyzed_articles() == []
        assert db.mark_article_analyzed(999) is False

    def test_ping(self, db):
        assert db.ping() is True


class TestCreateTables:
    def test_idempotent(self, db):
        assert db.create_tables() is True
        assert db.create_tables() is True

    def test_unreachable_store_returns_false(self, tmp_path, caplog):
        database = Database(f"sqlite:///{tmp_path / 'missing_dir' / 'nested' / 'atlas.db'}")

        with caplog.at_level("ERROR"):
            assert database.create_tables() is False

        assert "[DB] Failed to create tables" in caplog.text
        assert database.ping() is False


class TestUnavailableStore:
    """Every call degrades to an empty/neutral value when the schema is missing."""

    @pytest.fixture
    def bare_db(self, tmp_path):
        # reachable file, but create_tables() was never run
        return Database(f"sqlite:///{tmp_path / 'empty.db'}")

    def test_reads_return_empty(self, bare_db):
        assert bare_db.ping() is False
        assert bare_db.get_latest_articles() == []
        assert bare_db.get_unanalyzed_articles() == []
        assert bare_db.get_article(1) is None
        assert bare_db.article_exists("https://wire.test/a") is False
        assert bare_db.count_articles() == 0
        assert bare_db.get_source_by_name("ESA") is None
        assert bare_db.get_active_sources() == []
        assert bare_db.get_claims_for_article(1) == []
        assert bare_db.get_contradictions() == []
        assert bare_db.get_recent_alerts() == []
        assert bare_db.get_notifications(7) == []
        assert bare_db.get_preferences(7) is None
        assert bare_db.get_known_user_ids() == []

    def test_writes_are_no_ops(self, bare_db):
        assert bare_db.ensure_source(SourceEntry(name="ESA")) is None
        assert bare_db.set_source_prior(1, 0.5) is False
        assert bare_db.insert_article({"source_id": 1, "title": "t", "url": "https://wire.test/a"}) is None
        assert bare_db.mark_article_analyzed(1) is False
        assert bare_db.insert_claims(1, [ClaimDraft(text="Hyperbolic orbit", type="trajectory")]) == []
        assert bare_db.insert_notification(NotificationCandidate(user_id=7, title="hello")) is None
        assert bare_db.set_notification_flag(1, "is_read") is False
        assert bare_db.delete_expired_notifications() == 0
        assert bare_db.upsert_preferences(NotificationPreferences(user_id=7)) is False
