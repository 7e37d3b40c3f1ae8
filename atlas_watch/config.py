"""
Configuration management for the 3I/ATLAS monitoring service.
Settings come from environment variables (or .env); the source registry is static.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # LLM Configuration
    # Provider priority: OpenAI → Ollama
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: str = Field(default="", alias="OPENAI_BASE_URL")

    use_ollama: bool = Field(default=False, alias="USE_OLLAMA")
    ollama_model: str = Field(default="mistral", alias="OLLAMA_MODEL")
    ollama_base_url: str = Field(default="http://localhost:11434", alias="OLLAMA_BASE_URL")

    llm_temperature: float = Field(default=0.2, alias="LLM_TEMPERATURE")
    llm_json_max_retries: int = Field(default=2, alias="LLM_JSON_MAX_RETRIES")

    # ── Fetch Adapters ──
    news_api_key: str = Field(default="", alias="NEWS_API_KEY")
    nasa_api_key: str = Field(default="", alias="NASA_API_KEY")
    # Per-adapter ceiling; an adapter that does not settle in time contributes nothing
    fetch_timeout_seconds: float = Field(default=10.0, alias="FETCH_TIMEOUT_SECONDS")
    fetch_page_size: int = Field(default=50, alias="FETCH_PAGE_SIZE")
    apod_sample_count: int = Field(default=10, alias="APOD_SAMPLE_COUNT")
    rss_max_per_source: int = Field(default=25, alias="RSS_MAX_PER_SOURCE")
    rss_enabled: bool = Field(default=True, alias="RSS_ENABLED")

    # ── Ingestion ──
    # Prior given to providers that are not in the registry
    default_source_prior: float = Field(default=0.75, alias="DEFAULT_SOURCE_PRIOR")

    # ── Claim Analysis ──
    claim_excerpt_chars: int = Field(default=2000, alias="CLAIM_EXCERPT_CHARS")
    analysis_batch_size: int = Field(default=20, alias="ANALYSIS_BATCH_SIZE")
    # Same-type claims from other articles each new claim is compared against
    max_comparisons_per_claim: int = Field(default=5, alias="MAX_COMPARISONS_PER_CLAIM")

    # ── Scheduler ──
    scheduler_enabled: bool = Field(default=True, alias="SCHEDULER_ENABLED")
    ingestion_interval_hours: float = Field(default=4.0, alias="INGESTION_INTERVAL_HOURS")
    source_refresh_interval_hours: float = Field(default=2.0, alias="SOURCE_REFRESH_INTERVAL_HOURS")
    deep_analysis_hour: int = Field(default=2, alias="DEEP_ANALYSIS_HOUR")
    warm_start_delay_seconds: float = Field(default=5.0, alias="WARM_START_DELAY_SECONDS")

    # ── Notifications ──
    # IANA zone used for quiet hours; empty = server local time
    notification_timezone: str = Field(default="", alias="NOTIFICATION_TIMEZONE")
    notification_default_limit: int = Field(default=20, alias="NOTIFICATION_DEFAULT_LIMIT")

    # Database
    database_url: str = Field(
        default="sqlite:///./atlas_watch.db",
        alias="DATABASE_URL"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def get_llm_config(self) -> Optional[dict]:
        """Get LLM configuration based on settings.

        Priority: OpenAI → Ollama. Returns None when nothing is configured.
        """
        if self.openai_api_key:
            return {
                "provider": "openai",
                "api_key": self.openai_api_key,
                "model": self.openai_model,
                "base_url": self.openai_base_url or None,
            }
        elif self.use_ollama:
            return {
                "provider": "ollama",
                "model": self.ollama_model,
                "base_url": f"{self.ollama_base_url}/v1",
            }
        return None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Search term shared by the keyword-based adapters
TARGET_QUERY = "3I ATLAS"
NEWSAPI_QUERY = '3I ATLAS OR "interstellar comet" OR "3I/ATLAS"'

# Lowercase markers an RSS entry must contain to be kept
TOPIC_MARKERS = ("3i/atlas", "3i atlas", "3i-atlas", "interstellar")


# ─────────────────────────────────────────────────────────────────────────────
# Source registry: seeded into the store on every ingestion cycle.
# Existing rows are never overwritten, so priors edited by an admin survive.
# ─────────────────────────────────────────────────────────────────────────────
DEFAULT_SOURCES = {
    "nasa_3i_atlas": {
        "name": "NASA - 3I/ATLAS",
        "url": "https://science.nasa.gov/solar-system/comets/3i-atlas/",
        "source_type": "official_agency",
        "country": "United States",
        "credibility_score": 0.99,
        "description": "Official NASA page for 3I/ATLAS comet observations",
        "rss_url": "https://www.nasa.gov/feed/",
    },
    "esa_3i_atlas": {
        "name": "ESA - 3I/ATLAS",
        "url": "https://www.esa.int/Science_Exploration/Space_Science/Comet_3I_ATLAS_frequently_asked_questions",
        "source_type": "official_agency",
        "country": "Europe",
        "credibility_score": 0.99,
        "description": "European Space Agency information about 3I/ATLAS",
    },
    "seti_breakthrough_listen": {
        "name": "SETI Institute - Breakthrough Listen",
        "url": "https://www.seti.org/news/breakthrough-listen-observations-of-interstellar-object-3iatlas/",
        "source_type": "peer_reviewed",
        "country": "United States",
        "credibility_score": 0.98,
        "description": "SETI Institute technosignature observations of 3I/ATLAS",
    },
    "space_com": {
        "name": "Space.com - 3I/ATLAS News",
        "url": "https://www.space.com",
        "source_type": "news_outlet",
        "country": "United States",
        "credibility_score": 0.85,
        "description": "Space.com coverage of 3I/ATLAS",
        "rss_url": "https://www.space.com/feeds/all",
    },
    "universe_today": {
        "name": "Universe Today",
        "url": "https://www.universetoday.com",
        "source_type": "scientific_blog",
        "country": "United States",
        "credibility_score": 0.80,
        "description": "Universe Today astronomy news and analysis",
        "rss_url": "https://www.universetoday.com/feed/",
    },
    "sky_and_telescope": {
        "name": "Sky & Telescope",
        "url": "https://www.skyandtelescope.org",
        "source_type": "news_outlet",
        "country": "United States",
        "credibility_score": 0.85,
        "description": "Sky & Telescope astronomy magazine",
        "rss_url": "https://skyandtelescope.org/feed/",
    },
}
