"""
Ingestion pipeline: one collection cycle from providers to the articles table.

Steps per cycle:
  1. Seed registry sources (insert by name, never overwrite)
  2. Aggregator.fetch_all()
  3. Resolve each article's source by provider name (auto-create unknown ones)
  4. Categorize title + description
  5. Score from the source prior and category
  6. Insert if the URL is new

Steps 3-6 run per article inside their own try block, so one bad item
never aborts the batch.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Optional
from urllib.parse import urlparse

from ..config import DEFAULT_SOURCES, Settings, get_settings
from ..database import Database
from ..schemas import IngestionReport, RawArticle, SourceEntry, SourceType
from . import credibility
from .aggregator import Aggregator
from .classifier import categorize

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Runs collection cycles against one database."""

    def __init__(self, db: Database, aggregator: Optional[Aggregator] = None,
                 settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.aggregator = aggregator or Aggregator()
        self._lock = asyncio.Lock()
        self.last_report: Optional[IngestionReport] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def refresh_sources(self) -> int:
        """Seed the registry into the store. Returns the number of rows created."""
        created = 0
        for cfg in DEFAULT_SOURCES.values():
            row = self.db.ensure_source(SourceEntry(**cfg))
            if row and row.get("created"):
                created += 1
        if created:
            logger.info(f"[Ingest] Registered {created} new sources")
        return created

    async def run_cycle(self) -> IngestionReport:
        """Run one collection cycle; a trigger that overlaps a running cycle is skipped."""
        if self._lock.locked():
            logger.info("[Ingest] Previous cycle still running, skipping trigger")
            return IngestionReport(skipped=True)

        async with self._lock:
            report = IngestionReport(started_at=datetime.now(timezone.utc))
            report.sources_created = self.refresh_sources()

            articles = await self.aggregator.fetch_all()
            report.fetched = len(articles)
            if not articles:
                logger.info("[Ingest] No articles fetched this cycle")

            source_cache: Dict[str, Dict] = {}
            for article in articles:
                try:
                    outcome = self._ingest_one(article, source_cache, report)
                    if outcome == "inserted":
                        report.inserted += 1
                    else:
                        report.duplicates += 1
                except Exception as e:
                    report.failed += 1
                    report.errors.append(f"{article.url}: {e}")
                    logger.warning(f"[Ingest] Failed to ingest {article.url}: {e}")

            report.completed_at = datetime.now(timezone.utc)
            self.last_report = report
            logger.info(
                f"[Ingest] Cycle done: fetched={report.fetched} inserted={report.inserted} "
                f"duplicates={report.duplicates} failed={report.failed} "
                f"new_sources={report.sources_created}"
            )
            return report

    def _ingest_one(self, article: RawArticle, source_cache: Dict[str, Dict],
                    report: IngestionReport) -> str:
        source = self._resolve_source(article, source_cache, report)
        if source is None:
            raise RuntimeError(f"could not resolve source {article.source!r}")

        category = categorize(article.title, article.classification_text)
        score = credibility.score(source.get("credibility_score"), category)

        if self.db.article_exists(article.url):
            return "duplicate"

        article_id = self.db.insert_article({
            "source_id": source["id"],
            "title": article.title,
            "content": article.content,
            "summary": article.description,
            "url": article.url,
            "image_url": article.image_url,
            "author": article.author,
            "published_at": article.published_at,
            "category": category,
            "credibility_score": score,
        })
        # None here means another writer stored the URL first
        return "inserted" if article_id is not None else "duplicate"

    def _resolve_source(self, article: RawArticle, source_cache: Dict[str, Dict],
                        report: IngestionReport) -> Optional[Dict]:
        name = article.source
        if name in source_cache:
            return source_cache[name]

        source = self.db.get_source_by_name(name)
        if source is None:
            parsed = urlparse(article.url)
            origin = f"{parsed.scheme}://{parsed.netloc}" if parsed.netloc else ""
            source = self.db.ensure_source(SourceEntry(
                name=name,
                url=origin,
                source_type=SourceType.NEWS_OUTLET,
                credibility_score=self.settings.default_source_prior,
                description="Added automatically from fetched coverage",
            ))
            if source and source.get("created"):
                report.sources_created += 1
                logger.info(f"[Ingest] Auto-created source {name!r} (prior {self.settings.default_source_prior})")

        if source is not None:
            source_cache[name] = source
        return source
