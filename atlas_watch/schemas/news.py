"""
News article and source data models.

These models represent the raw material of the pipeline: articles returned
by the fetch adapters, the registry sources they are attributed to, and the
per-cycle ingestion report.

Flow: FetchAdapter → RawArticle → (classify, score) → articles table
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .base import SourceType


class SourceEntry(BaseModel):
    """Registry entry for a publisher; seeded into the sources table."""
    name: str
    url: str = ""
    source_type: SourceType = SourceType.NEWS_OUTLET
    credibility_score: float = Field(ge=0.0, le=1.0, default=0.75)
    country: Optional[str] = None
    description: Optional[str] = None
    rss_url: Optional[str] = None
    api_url: Optional[str] = None
    is_active: bool = True


class RawArticle(BaseModel):
    """
    Article as returned by a fetch adapter, before classification.

    `source` is the provider name; it is matched against the registry by name.
    `published_at` is None when the provider's timestamp could not be parsed.
    """
    title: str
    url: str
    source: str
    description: Optional[str] = None
    content: Optional[str] = None
    published_at: Optional[datetime] = None
    image_url: Optional[str] = None
    author: Optional[str] = None

    @field_validator("title", "url", "source", mode="before")
    @classmethod
    def strip_required(cls, v):
        v = (v or "").strip() if isinstance(v, str) or v is None else v
        if v == "":
            raise ValueError("must not be empty")
        return v

    @property
    def classification_text(self) -> str:
        """Text the body-side of the classifier sees."""
        return self.description or ""


class IngestionReport(BaseModel):
    """Counts produced by one ingestion cycle."""
    fetched: int = 0
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
    sources_created: int = 0
    skipped: bool = False
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    errors: List[str] = Field(default_factory=list)
