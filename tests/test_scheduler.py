import asyncio
from datetime import datetime

import pytest

from atlas_watch.scheduler import CollectionScheduler, register_default_jobs, seconds_until


class TestSecondsUntil:
    def test_later_today(self):
        assert seconds_until(2, now=datetime(2025, 7, 3, 1, 30)) == 30 * 60

    def test_already_passed_rolls_to_tomorrow(self):
        assert seconds_until(2, now=datetime(2025, 7, 3, 2, 0)) == 24 * 3600
        assert seconds_until(2, now=datetime(2025, 7, 3, 3, 0)) == 23 * 3600

    def test_minutes(self):
        assert seconds_until(2, 15, now=datetime(2025, 7, 3, 2, 0)) == 15 * 60


class TestRegistration:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            CollectionScheduler().every(0, lambda: None, "bad")

    def test_rejects_bad_hour(self):
        with pytest.raises(ValueError):
            CollectionScheduler().daily_at(24, lambda: None, "bad")

    def test_default_jobs(self, settings):
        scheduler = CollectionScheduler()

        jobs = register_default_jobs(scheduler, pipeline=None, engine=None, notifications=None, settings=settings)

        by_name = {job.name: job for job in jobs}
        assert set(by_name) == {"ingestion", "source_refresh", "deep_analysis", "notification_cleanup", "warm_start"}
        assert by_name["ingestion"].interval == 4 * 3600
        assert by_name["source_refresh"].interval == 2 * 3600
        assert (by_name["deep_analysis"].hour, by_name["deep_analysis"].minute) == (2, 0)
        assert by_name["warm_start"].delay == 5
        assert scheduler.status() == {
            "is_running": False,
            "job_count": 5,
            "jobs": [job.to_dict() for job in jobs],
        }


@pytest.mark.asyncio
class TestRunning:
    async def test_interval_job_repeats(self):
        calls = []

        async def tick():
            calls.append(1)

        scheduler = CollectionScheduler()
        job = scheduler.every(0.02, tick, "tick")
        scheduler.start()
        await asyncio.sleep(0.15)
        await scheduler.stop()

        assert len(calls) >= 3
        assert job.runs == len(calls)
        assert job.last_run is not None

    async def test_once_job_runs_once(self):
        calls = []

        async def warm():
            calls.append(1)

        scheduler = CollectionScheduler()
        scheduler.once(0.01, warm, "warm")
        scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert calls == [1]

    async def test_overlapping_run_is_skipped(self):
        started = []

        async def slow():
            started.append(1)
            await asyncio.sleep(0.2)

        scheduler = CollectionScheduler()
        job = scheduler.every(0.03, slow, "slow")
        scheduler.start()
        await asyncio.sleep(0.15)

        assert len(started) == 1
        assert job.skipped >= 2
        assert job.running is True
        await scheduler.stop()
        assert job.running is False

    async def test_failure_is_recorded_and_loop_continues(self, caplog):
        async def broken():
            raise RuntimeError("feed down")

        scheduler = CollectionScheduler()
        job = scheduler.every(0.02, broken, "broken")
        with caplog.at_level("ERROR"):
            scheduler.start()
            await asyncio.sleep(0.1)
            await scheduler.stop()

        assert job.failures >= 2
        assert job.last_error == "feed down"
        assert "broken failed: feed down" in caplog.text

    async def test_stop_cancels_in_flight_runs(self):
        cancelled = asyncio.Event()

        async def long_job():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        scheduler = CollectionScheduler()
        scheduler.once(0, long_job, "long")
        scheduler.start()
        await asyncio.sleep(0.02)
        await scheduler.stop()

        assert cancelled.is_set()
        assert scheduler.status()["is_running"] is False

    async def test_job_registered_after_start_runs(self):
        calls = []

        async def late():
            calls.append(1)

        scheduler = CollectionScheduler()
        scheduler.start()
        scheduler.once(0, late, "late")
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert calls == [1]
