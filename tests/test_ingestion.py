import asyncio

import pytest

from atlas_watch.config import DEFAULT_SOURCES
from atlas_watch.database import Database
from atlas_watch.news import Aggregator, IngestionPipeline
from atlas_watch.schemas import Category, SourceEntry
from tests.fakes import FakeAdapter, raw, ts


def pipeline_for(db, settings, *articles, delay=0.0):
    adapter = FakeAdapter("Test Feed", list(articles), delay=delay, settings=settings)
    return IngestionPipeline(db, Aggregator([adapter], timeout=1.0), settings), adapter


@pytest.mark.asyncio
class TestRunCycle:
    async def test_country_token_wins_over_trajectory(self, db, settings):
        pipeline, _ = pipeline_for(db, settings, raw(
            "https://wire.test/china-trajectory",
            title="China releases trajectory data",
            description="international analysis",
            published=ts(3),
        ))

        report = await pipeline.run_cycle()

        assert report.inserted == 1
        stored = db.get_latest_articles()[0]
        assert stored["category"] == Category.INTERNATIONAL_PERSPECTIVE.value
        assert stored["is_analyzed"] is False
        assert stored["credibility_score"] == 0.75

    async def test_second_run_is_idempotent(self, db, settings):
        pipeline, _ = pipeline_for(db, settings, raw("https://wire.test/a"), raw("https://wire.test/b"))

        first = await pipeline.run_cycle()
        second = await pipeline.run_cycle()

        assert (first.inserted, first.duplicates) == (2, 0)
        assert (second.inserted, second.duplicates) == (0, 2)
        assert db.count_articles() == 2

    async def test_registry_is_seeded_once(self, db, settings):
        pipeline, _ = pipeline_for(db, settings)

        first = await pipeline.run_cycle()
        second = await pipeline.run_cycle()

        assert first.sources_created == len(DEFAULT_SOURCES)
        assert second.sources_created == 0
        assert len(db.get_active_sources()) == len(DEFAULT_SOURCES)

    async def test_unknown_provider_gets_default_prior(self, db, settings):
        pipeline, _ = pipeline_for(db, settings, raw("https://cosmic.test/posts/1", source="Cosmic Blog"))

        report = await pipeline.run_cycle()

        source = db.get_source_by_name("Cosmic Blog")
        assert source["credibility_score"] == 0.75
        assert source["url"] == "https://cosmic.test"
        assert report.sources_created == len(DEFAULT_SOURCES) + 1
        assert db.get_latest_articles()[0]["source_id"] == source["id"]

    async def test_existing_prior_is_not_overwritten(self, db, settings):
        db.ensure_source(SourceEntry(name="Universe Today", credibility_score=0.4))
        pipeline, _ = pipeline_for(db, settings, raw(
            "https://ut.test/scope", title="New telescope observation of 3I/ATLAS", source="Universe Today",
        ))

        await pipeline.run_cycle()

        assert db.get_source_by_name("Universe Today")["credibility_score"] == 0.4
        stored = db.get_latest_articles()[0]
        assert stored["category"] == Category.SCIENTIFIC_DISCOVERY.value
        assert stored["credibility_score"] == 0.44

    async def test_one_bad_item_does_not_abort_the_batch(self, db, settings, monkeypatch):
        original = db.insert_article

        def flaky_insert(data):
            if data["url"].endswith("/bad"):
                raise RuntimeError("disk on fire")
            return original(data)

        monkeypatch.setattr(db, "insert_article", flaky_insert)
        pipeline, _ = pipeline_for(
            db, settings, raw("https://wire.test/good-1"), raw("https://wire.test/bad"), raw("https://wire.test/good-2"),
        )

        report = await pipeline.run_cycle()

        assert report.inserted == 2
        assert report.failed == 1
        assert "disk on fire" in report.errors[0]
        assert db.count_articles() == 2

    async def test_empty_cycle(self, db, settings):
        pipeline, _ = pipeline_for(db, settings)

        report = await pipeline.run_cycle()

        assert (report.fetched, report.inserted, report.duplicates, report.failed) == (0, 0, 0, 0)
        assert report.completed_at is not None
        assert pipeline.last_report is report

    async def test_overlapping_trigger_is_skipped(self, db, settings):
        pipeline, adapter = pipeline_for(db, settings, raw("https://wire.test/slow"), delay=0.2)

        running = asyncio.create_task(pipeline.run_cycle())
        await asyncio.sleep(0.05)
        assert pipeline.is_running

        overlapping = await pipeline.run_cycle()
        finished = await running

        assert overlapping.skipped is True
        assert overlapping.inserted == 0
        assert finished.inserted == 1
        assert adapter.calls == 1
        assert not pipeline.is_running

    async def test_url_stored_by_another_writer_counts_as_duplicate(self, db, settings, monkeypatch):
        original_exists = db.article_exists
        writer = db.ensure_source(SourceEntry(name="Race Writer"))

        def exists_then_lose_race(url):
            found = original_exists(url)
            # a concurrent writer stores the same URL between the check and our insert
            db.insert_article({"source_id": writer["id"], "title": "first", "url": url})
            return found

        monkeypatch.setattr(db, "article_exists", exists_then_lose_race)
        pipeline, _ = pipeline_for(db, settings, raw("https://wire.test/contested"))

        report = await pipeline.run_cycle()

        assert (report.inserted, report.duplicates, report.failed) == (0, 1, 0)
        assert db.count_articles() == 1
        assert db.get_latest_articles()[0]["source_id"] == writer["id"]

    async def test_unavailable_store_degrades_without_raising(self, tmp_path, settings):
        bare_db = Database(f"sqlite:///{tmp_path / 'no_schema.db'}")
        pipeline, _ = pipeline_for(bare_db, settings, raw("https://wire.test/a"), raw("https://wire.test/b"))

        report = await pipeline.run_cycle()

        assert report.fetched == 2
        assert report.sources_created == 0
        assert report.inserted == 0
        assert report.failed == 2
        assert report.completed_at is not None
        assert bare_db.count_articles() == 0


class TestRefreshSources:
    def test_counts_only_new_rows(self, db, settings):
        pipeline, _ = pipeline_for(db, settings)
        assert pipeline.refresh_sources() == len(DEFAULT_SOURCES)
        assert pipeline.refresh_sources() == 0
