"""
Fetch adapters for 3I/ATLAS coverage.

Each adapter wraps one provider (NewsAPI, Spaceflight News API, NASA APOD,
the NASA and SETI pages, or an RSS feed) behind the same contract:
`await adapter.fetch()` returns a list of RawArticle and never raises.
Missing credentials, network errors and malformed payloads all yield [].
"""

import asyncio
import html
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import feedparser
import httpx
from bs4 import BeautifulSoup
from langdetect import detect, LangDetectException
from langdetect import DetectorFactory
from pydantic import ValidationError

from ..config import (
    DEFAULT_SOURCES, NEWSAPI_QUERY, TARGET_QUERY, TOPIC_MARKERS,
    Settings, get_settings,
)
from ..schemas import RawArticle, SourceEntry

DetectorFactory.seed = 0  # Deterministic language detection

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; AtlasWatch/1.0; +https://github.com/atlas-watch)"

_DATETIME_FORMATS = [
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%S",
    "%a, %d %b %Y %H:%M:%S %z",
    "%a, %d %b %Y %H:%M:%S GMT",
    "%Y-%m-%d",
]


def parse_datetime(date_str: Optional[str]) -> Optional[datetime]:
    """Parse a provider timestamp into an aware UTC datetime; None if unparsable."""
    if not date_str or not isinstance(date_str, str):
        return None
    value = date_str.strip()
    for fmt in _DATETIME_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    return None


def clean_text(text: Optional[str], limit: Optional[int] = None) -> str:
    """Strip HTML tags and decode entities."""
    if not text:
        return ""
    text = re.sub(r'<[^>]+>', '', text)
    text = html.unescape(text)
    text = re.sub(r'\s+', ' ', text).strip()
    return text[:limit] if limit else text


def is_target_language(text: str, target_lang: str = "en") -> bool:
    """Check if text is in the target language using langdetect.

    Returns True if detected language matches target, or if text is too
    short for reliable detection (< 20 chars).
    """
    if not text or len(text.strip()) < 20:
        return True
    try:
        return detect(text[:500]) == target_lang
    except LangDetectException:
        return True


class FetchAdapter(ABC):
    """Base class for one news provider."""

    name: str = "adapter"
    # Endpoint used by check_api_health(); None = not checked
    health_url: Optional[str] = None

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._transport = transport

    async def fetch(self) -> List[RawArticle]:
        """Fetch articles. Never raises."""
        try:
            articles = await self._fetch()
            logger.info(f"[OK] {self.name}: {len(articles)} articles")
            return articles
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[FAIL] {self.name}: {e}")
            return []

    @abstractmethod
    async def _fetch(self) -> List[RawArticle]:
        ...

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.settings.fetch_timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
        )

    def _build(self, **fields) -> Optional[RawArticle]:
        """Build a RawArticle, dropping items without title/url."""
        try:
            return RawArticle(**fields)
        except ValidationError as e:
            logger.debug(f"{self.name}: dropped malformed item ({e.error_count()} errors)")
            return None

    def _health_params(self) -> Dict[str, Any]:
        return {}

    async def check_health(self) -> bool:
        """Lightweight reachability check against health_url."""
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get(self.health_url, params=self._health_params())
                response.raise_for_status()
            return True
        except Exception as e:
            logger.debug(f"{self.name} health check failed: {e}")
            return False


# ── Keyword search APIs ──────────────────────────────────────────────────────

class NewsAPIAdapter(FetchAdapter):
    """NewsAPI.org /v2/everything search (needs NEWS_API_KEY)."""

    name = "News API"
    url = "https://newsapi.org/v2/everything"
    health_url = url

    def _health_params(self) -> Dict[str, Any]:
        return {"q": "test", "pageSize": 1, "apiKey": self.settings.news_api_key}

    async def _fetch(self) -> List[RawArticle]:
        api_key = self.settings.news_api_key
        if not api_key:
            logger.debug("NEWS_API_KEY not set, skipping")
            return []

        params = {
            "q": NEWSAPI_QUERY,
            "sortBy": "publishedAt",
            "language": "en",
            "apiKey": api_key,
            "pageSize": self.settings.fetch_page_size,
        }
        async with self._client() as client:
            response = await client.get(self.url, params=params)
            response.raise_for_status()
            data = response.json()

        items = data.get("articles")
        if not isinstance(items, list):
            logger.warning(f"{self.name}: no articles in response")
            return []

        articles = []
        for item in items:
            if not isinstance(item, dict):
                continue
            source = item.get("source") or {}
            article = self._build(
                title=clean_text(item.get("title")),
                description=clean_text(item.get("description")) or None,
                url=item.get("url") or "",
                image_url=item.get("urlToImage"),
                source=(source.get("name") if isinstance(source, dict) else None) or self.name,
                published_at=parse_datetime(item.get("publishedAt")),
                content=item.get("content"),
                author=item.get("author"),
            )
            if article:
                articles.append(article)
        return articles


class SpaceflightNewsAdapter(FetchAdapter):
    """Spaceflight News API v4 (no key required)."""

    name = "Spaceflight News API"
    url = "https://api.spaceflightnewsapi.net/v4/articles/"
    health_url = url

    def _health_params(self) -> Dict[str, Any]:
        return {"limit": 1}

    async def _fetch(self) -> List[RawArticle]:
        params = {"search": TARGET_QUERY, "limit": self.settings.fetch_page_size}
        async with self._client() as client:
            response = await client.get(self.url, params=params)
            response.raise_for_status()
            data = response.json()

        results = data.get("results")
        if not isinstance(results, list):
            logger.warning(f"{self.name}: no results in response")
            return []

        articles = []
        for item in results:
            if not isinstance(item, dict):
                continue
            summary = clean_text(item.get("summary")) or None
            article = self._build(
                title=clean_text(item.get("title")),
                description=summary,
                url=item.get("url") or "",
                image_url=item.get("image_url"),
                source=item.get("news_site") or "Spaceflight News",
                published_at=parse_datetime(item.get("published_at")),
                content=summary,
            )
            if article:
                articles.append(article)
        return articles


class NasaApodAdapter(FetchAdapter):
    """NASA Astronomy Picture of the Day, random sample filtered to comet/ATLAS items."""

    name = "NASA - APOD"
    url = "https://api.nasa.gov/planetary/apod"
    health_url = url

    def _health_params(self) -> Dict[str, Any]:
        return {"api_key": self.settings.nasa_api_key, "count": 1}

    @staticmethod
    def _is_relevant(item: Dict[str, Any]) -> bool:
        title = (item.get("title") or "").lower()
        explanation = (item.get("explanation") or "").lower()
        return (
            "atlas" in title or "comet" in title
            or "atlas" in explanation or "interstellar" in explanation
        )

    @staticmethod
    def page_url(date_str: str) -> str:
        """APOD page for a YYYY-MM-DD date, e.g. 2025-07-03 → ap250703.html."""
        return f"https://apod.nasa.gov/apod/ap{date_str.replace('-', '')[2:]}.html"

    async def _fetch(self) -> List[RawArticle]:
        api_key = self.settings.nasa_api_key
        if not api_key:
            logger.debug("NASA_API_KEY not set, skipping")
            return []

        params = {"api_key": api_key, "count": self.settings.apod_sample_count}
        async with self._client() as client:
            response = await client.get(self.url, params=params)
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, list):
            logger.warning(f"{self.name}: expected a list, got {type(data).__name__}")
            return []

        articles = []
        for item in data:
            if not isinstance(item, dict) or not self._is_relevant(item):
                continue
            date_str = item.get("date") or ""
            if not date_str:
                continue
            explanation = item.get("explanation")
            article = self._build(
                title=item.get("title") or "",
                description=explanation,
                url=self.page_url(date_str),
                image_url=item.get("url"),
                source=self.name,
                published_at=parse_datetime(date_str),
                content=explanation,
            )
            if article:
                articles.append(article)
        return articles


# ── Official pages ───────────────────────────────────────────────────────────

class StaticPageAdapter(FetchAdapter):
    """Reports one fixed page as an article whenever the page is reachable.

    The page's og:title and meta description are used when present.
    """

    page_url: str = ""
    source_name: str = ""
    fallback_title: str = ""
    fallback_description: str = ""

    async def _fetch(self) -> List[RawArticle]:
        async with self._client() as client:
            response = await client.get(self.page_url)
            response.raise_for_status()
            page = response.text

        soup = BeautifulSoup(page, "lxml")
        title = self._meta(soup, property="og:title") or self.fallback_title
        description = (
            self._meta(soup, attrs={"name": "description"})
            or self._meta(soup, property="og:description")
            or self.fallback_description
        )
        modified = self._meta(soup, property="article:modified_time")

        article = self._build(
            title=title,
            description=description,
            url=self.page_url,
            source=self.source_name,
            published_at=parse_datetime(modified) or datetime.now(timezone.utc),
            content=description,
        )
        return [article] if article else []

    @staticmethod
    def _meta(soup: BeautifulSoup, **match) -> Optional[str]:
        tag = soup.find("meta", **match)
        if tag is None:
            return None
        return clean_text(tag.get("content")) or None


class NasaPageAdapter(StaticPageAdapter):
    name = "NASA 3I/ATLAS page"
    page_url = DEFAULT_SOURCES["nasa_3i_atlas"]["url"]
    source_name = DEFAULT_SOURCES["nasa_3i_atlas"]["name"]
    fallback_title = "NASA 3I/ATLAS Official Page"
    fallback_description = "Official NASA information about the interstellar comet 3I/ATLAS"


class SetiNewsAdapter(StaticPageAdapter):
    name = "SETI Institute"
    page_url = DEFAULT_SOURCES["seti_breakthrough_listen"]["url"]
    source_name = DEFAULT_SOURCES["seti_breakthrough_listen"]["name"]
    fallback_title = "SETI Institute - Breakthrough Listen Observations of 3I/ATLAS"
    fallback_description = "SETI Institute observations searching for technosignatures"


# ── RSS ──────────────────────────────────────────────────────────────────────

class RSSFeedAdapter(FetchAdapter):
    """RSS/Atom feed of a registry source, filtered to 3I/ATLAS entries."""

    def __init__(self, source: SourceEntry, settings: Optional[Settings] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(settings=settings, transport=transport)
        self.source = source
        self.name = f"RSS {source.name}"

    async def _fetch(self) -> List[RawArticle]:
        if not self.source.rss_url:
            return []

        async with self._client() as client:
            response = await client.get(self.source.rss_url)
            response.raise_for_status()
            feed = feedparser.parse(response.text)

        if feed.bozo and not feed.entries:
            raise ValueError(f"unparsable feed: {feed.get('bozo_exception')}")

        articles = []
        for entry in feed.entries[: self.settings.rss_max_per_source * 4]:
            article = self._parse_entry(entry)
            if article:
                articles.append(article)
            if len(articles) >= self.settings.rss_max_per_source:
                break
        return articles

    def _parse_entry(self, entry) -> Optional[RawArticle]:
        title = clean_text(entry.get("title"))
        summary = clean_text(entry.get("summary") or entry.get("description"), limit=1000)

        haystack = f"{title} {summary}".lower()
        if not any(marker in haystack for marker in TOPIC_MARKERS):
            return None
        if not is_target_language(f"{title} {summary[:200]}"):
            logger.debug(f"Filtered non-English entry: {title[:60]}...")
            return None

        published = None
        parsed = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed:
            published = datetime(*parsed[:6], tzinfo=timezone.utc)
        else:
            published = parse_datetime(entry.get("published"))

        return self._build(
            title=title,
            description=summary or None,
            url=entry.get("link") or "",
            source=self.source.name,
            published_at=published,
            author=entry.get("author"),
        )


def default_adapters(settings: Optional[Settings] = None,
                     transport: Optional[httpx.AsyncBaseTransport] = None) -> List[FetchAdapter]:
    """Adapters in registration order (this order decides first-seen on URL ties)."""
    settings = settings or get_settings()
    adapters: List[FetchAdapter] = [
        NewsAPIAdapter(settings, transport),
        SpaceflightNewsAdapter(settings, transport),
        NasaApodAdapter(settings, transport),
        NasaPageAdapter(settings, transport),
        SetiNewsAdapter(settings, transport),
    ]
    if settings.rss_enabled:
        for cfg in DEFAULT_SOURCES.values():
            if cfg.get("rss_url"):
                adapters.append(RSSFeedAdapter(SourceEntry(**cfg), settings, transport))
    return adapters


async def check_api_health(adapters: Optional[List[FetchAdapter]] = None) -> Dict[str, bool]:
    """Check every adapter that exposes a health endpoint."""
    adapters = adapters if adapters is not None else default_adapters()
    checked = [a for a in adapters if a.health_url]
    results = await asyncio.gather(*(a.check_health() for a in checked))
    return {a.name: ok for a, ok in zip(checked, results)}
