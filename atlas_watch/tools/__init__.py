# Tools module
from .llm_service import LLMService
from .feeds import (
    FetchAdapter,
    NewsAPIAdapter,
    SpaceflightNewsAdapter,
    NasaApodAdapter,
    NasaPageAdapter,
    SetiNewsAdapter,
    RSSFeedAdapter,
    default_adapters,
    check_api_health,
)

__all__ = [
    # LLM
    "LLMService",
    # Fetch adapters
    "FetchAdapter",
    "NewsAPIAdapter",
    "SpaceflightNewsAdapter",
    "NasaApodAdapter",
    "NasaPageAdapter",
    "SetiNewsAdapter",
    "RSSFeedAdapter",
    "default_adapters",
    "check_api_health",
]
