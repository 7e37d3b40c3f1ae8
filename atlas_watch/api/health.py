"""Health check router -- DB status, provider reachability, config summary."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from atlas_watch.api.dependencies import AppSettings, DB
from atlas_watch.tools.feeds import check_api_health

router = APIRouter()


@router.get("/")
async def root():
    return {"service": "3I/ATLAS Watch API", "version": "1.0.0"}


@router.get("/health")
async def health(request: Request, db: DB, settings: AppSettings):
    llm = request.app.state.engine.llm
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": db.ping(),
        "articles": db.count_articles(),
        "llm": llm.describe() if hasattr(llm, "describe") else {"configured": True},
        "config": {
            "news_api_configured": bool(settings.news_api_key),
            "nasa_api_configured": bool(settings.nasa_api_key),
            "fetch_timeout_seconds": settings.fetch_timeout_seconds,
            "scheduler_enabled": settings.scheduler_enabled,
            "ingestion_interval_hours": settings.ingestion_interval_hours,
            "deep_analysis_hour": settings.deep_analysis_hour,
        },
    }


@router.get("/health/providers")
async def provider_health(request: Request):
    """Live reachability check of the external news APIs."""
    adapters = request.app.state.pipeline.aggregator.adapters
    return await check_api_health(adapters)
