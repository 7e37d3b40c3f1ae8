"""
Collection scheduler: asyncio background jobs owned by the app lifespan.

The scheduler is an explicit object: the owner registers jobs, calls
start() once the event loop runs and awaits stop() on shutdown. Each job
runs its callable in a separate task; a trigger that fires while the
previous run of the same job is still in flight is skipped.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

JobFn = Callable[[], Awaitable[Any]]


def seconds_until(hour: int, minute: int = 0, now: Optional[datetime] = None) -> float:
    """Seconds from now until the next local hour:minute (always > 0)."""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


@dataclass
class JobHandle:
    """Live handle for one registered job."""
    name: str
    kind: str  # every | once | daily
    description: str
    fn: JobFn
    interval: Optional[float] = None
    delay: Optional[float] = None
    hour: Optional[int] = None
    minute: int = 0
    runs: int = 0
    skipped: int = 0
    failures: int = 0
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
    running: bool = False
    task: Optional[asyncio.Task] = None
    _run_tasks: Set[asyncio.Task] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "description": self.description,
            "runs": self.runs,
            "skipped": self.skipped,
            "failures": self.failures,
            "running": self.running,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_error": self.last_error,
        }


class CollectionScheduler:
    """Interval, one-shot and daily asyncio jobs."""

    def __init__(self):
        self._jobs: List[JobHandle] = []
        self._started = False

    @property
    def jobs(self) -> List[JobHandle]:
        return list(self._jobs)

    @property
    def is_running(self) -> bool:
        return self._started

    # ── Registration ──────────────────────────────────────────────────

    def every(self, interval: float, fn: JobFn, name: str, description: str = "") -> JobHandle:
        """Run fn every `interval` seconds (first run after one interval)."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._register(JobHandle(
            name=name, kind="every", fn=fn, interval=interval,
            description=description or f"{name} (every {_fmt_seconds(interval)})",
        ))

    def once(self, delay: float, fn: JobFn, name: str, description: str = "") -> JobHandle:
        """Run fn once, `delay` seconds after start()."""
        return self._register(JobHandle(
            name=name, kind="once", fn=fn, delay=max(0.0, delay),
            description=description or f"{name} (once after {_fmt_seconds(delay)})",
        ))

    def daily_at(self, hour: int, fn: JobFn, name: str, minute: int = 0, description: str = "") -> JobHandle:
        """Run fn every day at local hour:minute."""
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError("hour/minute out of range")
        return self._register(JobHandle(
            name=name, kind="daily", fn=fn, hour=hour, minute=minute,
            description=description or f"{name} (daily at {hour:02d}:{minute:02d})",
        ))

    def _register(self, job: JobHandle) -> JobHandle:
        self._jobs.append(job)
        if self._started:
            job.task = asyncio.create_task(self._drive(job), name=f"job:{job.name}")
        return job

    # ── Lifecycle ─────────────────────────────────────────────────────

    def start(self):
        """Start every registered job. Must be called from a running event loop."""
        if self._started:
            return
        self._started = True
        for job in self._jobs:
            job.task = asyncio.create_task(self._drive(job), name=f"job:{job.name}")
        logger.info(f"[Scheduler] Started with {len(self._jobs)} jobs")

    async def stop(self):
        """Cancel every job loop and in-flight run, then wait for them to finish."""
        if not self._started:
            return
        self._started = False
        tasks = []
        for job in self._jobs:
            if job.task:
                tasks.append(job.task)
            tasks.extend(job._run_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for job in self._jobs:
            job.task = None
            job._run_tasks.clear()
            job.running = False
        logger.info("[Scheduler] Stopped")

    def status(self) -> Dict[str, Any]:
        return {
            "is_running": self._started,
            "job_count": len(self._jobs),
            "jobs": [job.to_dict() for job in self._jobs],
        }

    # ── Internals ─────────────────────────────────────────────────────

    async def _drive(self, job: JobHandle):
        if job.kind == "once":
            await asyncio.sleep(job.delay or 0.0)
            self._trigger(job)
            return
        while True:
            if job.kind == "every":
                await asyncio.sleep(job.interval)
            else:
                await asyncio.sleep(seconds_until(job.hour, job.minute))
            self._trigger(job)

    def _trigger(self, job: JobHandle):
        if job.running:
            job.skipped += 1
            logger.info(f"[Scheduler] {job.name}: previous run still in progress, skipping")
            return
        job.running = True
        task = asyncio.create_task(self.run_job(job), name=f"run:{job.name}")
        job._run_tasks.add(task)
        task.add_done_callback(job._run_tasks.discard)

    async def run_job(self, job: JobHandle):
        """Run a job body once, logging failures instead of raising."""
        job.running = True
        logger.info(f"[Scheduler] Running {job.name}")
        try:
            await job.fn()
            job.last_error = None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            job.failures += 1
            job.last_error = str(e)
            logger.error(f"[Scheduler] {job.name} failed: {e}")
        finally:
            job.runs += 1
            job.last_run = datetime.now(timezone.utc)
            job.running = False


def _fmt_seconds(seconds: float) -> str:
    if seconds >= 3600 and seconds % 3600 == 0:
        return f"{int(seconds // 3600)}h"
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)}m"
    return f"{seconds:g}s"


def register_default_jobs(scheduler: CollectionScheduler, pipeline, engine, notifications,
                          settings: Optional[Settings] = None) -> List[JobHandle]:
    """Ingestion every 4h, source refresh every 2h, deep analysis daily, warm start."""
    settings = settings or get_settings()

    async def _ingest():
        await pipeline.run_cycle()

    async def _refresh_sources():
        pipeline.refresh_sources()

    async def _deep_analysis():
        await engine.analyze_pending()

    async def _cleanup_notifications():
        notifications.cleanup_expired()

    return [
        scheduler.every(
            settings.ingestion_interval_hours * 3600, _ingest, "ingestion",
            f"Main collection (every {settings.ingestion_interval_hours:g} hours)",
        ),
        scheduler.every(
            settings.source_refresh_interval_hours * 3600, _refresh_sources, "source_refresh",
            f"Source refresh (every {settings.source_refresh_interval_hours:g} hours)",
        ),
        scheduler.daily_at(
            settings.deep_analysis_hour, _deep_analysis, "deep_analysis",
            description=f"Deep analysis (daily at {settings.deep_analysis_hour:02d}:00)",
        ),
        scheduler.every(3600, _cleanup_notifications, "notification_cleanup", "Expired notification cleanup (hourly)"),
        scheduler.once(
            settings.warm_start_delay_seconds, _ingest, "warm_start",
            f"Initial collection ({settings.warm_start_delay_seconds:g}s after startup)",
        ),
    ]
