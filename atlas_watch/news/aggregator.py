"""
Aggregator: fan out to every fetch adapter, join, dedupe by URL, sort by recency.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..config import get_settings
from ..schemas import RawArticle
from ..tools.feeds import FetchAdapter, default_adapters

logger = logging.getLogger(__name__)


class Aggregator:
    """Runs all registered adapters concurrently with a per-adapter timeout."""

    def __init__(self, adapters: Optional[Sequence[FetchAdapter]] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.adapters = list(adapters) if adapters is not None else default_adapters(settings)
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds

    async def fetch_all(self) -> List[RawArticle]:
        """Fetch from every adapter and return deduplicated articles, newest first.

        An adapter that raises or exceeds the timeout contributes nothing.
        """
        if not self.adapters:
            return []

        async def _fetch_limited(adapter: FetchAdapter) -> List[RawArticle]:
            try:
                return await asyncio.wait_for(adapter.fetch(), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"[TIMEOUT] {adapter.name}: Fetch timeout ({self.timeout:.0f}s), skipping")
                return []

        results = await asyncio.gather(
            *(_fetch_limited(a) for a in self.adapters),
            return_exceptions=True,
        )

        merged: List[RawArticle] = []
        for adapter, result in zip(self.adapters, results):
            if isinstance(result, BaseException):
                logger.warning(f"[FAIL] {adapter.name}: {result}")
            elif isinstance(result, list):
                merged.extend(result)

        unique = self.deduplicate(merged)
        self.sort_by_recency(unique)
        logger.info(f"[Aggregator] {len(unique)} unique articles from {len(self.adapters)} adapters "
                    f"({len(merged) - len(unique)} duplicates dropped)")
        return unique

    @staticmethod
    def deduplicate(articles: List[RawArticle]) -> List[RawArticle]:
        """Keep the first article seen for each exact URL."""
        seen = set()
        unique = []
        for article in articles:
            if article.url in seen:
                continue
            seen.add(article.url)
            unique.append(article)
        return unique

    @staticmethod
    def sort_by_recency(articles: List[RawArticle]) -> None:
        """Newest first; articles without a timestamp go last in arrival order."""
        def _key(article: RawArticle):
            if article.published_at is None:
                return (1, 0.0)
            return (0, -article.published_at.timestamp())

        articles.sort(key=_key)
