"""
3I/ATLAS Watch - Main Entry Point.
FastAPI server and CLI interface.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .analysis import ClaimAnalysisEngine
from .api import articles, collection, health, notifications, sources
from .config import Settings, get_settings
from .database import Database
from .news import Aggregator, IngestionPipeline
from .notifications import NotificationService
from .scheduler import CollectionScheduler, register_default_jobs
from .tools.feeds import default_adapters
from .tools.llm_service import LLMService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

# Suppress noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_services(settings: Settings, db: Optional[Database] = None,
                   aggregator: Optional[Aggregator] = None, llm=None) -> dict:
    """Wire the database, pipeline, analysis engine and notification service."""
    db = db or Database(settings.database_url)
    if not db.create_tables():
        logger.warning("[DB] Store unavailable at startup, continuing in degraded mode")
    aggregator = aggregator or Aggregator(default_adapters(settings), timeout=settings.fetch_timeout_seconds)
    return {
        "db": db,
        "pipeline": IngestionPipeline(db, aggregator, settings),
        "engine": ClaimAnalysisEngine(db, llm or LLMService(settings), settings),
        "notifications": NotificationService(db, settings),
    }


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None,
               aggregator: Optional[Aggregator] = None, llm=None) -> FastAPI:
    """Build the API. Collaborators can be injected (tests pass fakes)."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting 3I/ATLAS Watch...")
        services = build_services(settings, db=db, aggregator=aggregator, llm=llm)
        scheduler = CollectionScheduler()

        app.state.settings = settings
        app.state.scheduler = scheduler
        for name, service in services.items():
            setattr(app.state, name, service)

        if settings.scheduler_enabled:
            register_default_jobs(
                scheduler, services["pipeline"], services["engine"], services["notifications"], settings,
            )
            scheduler.start()
        else:
            logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")

        yield

        logger.info("Shutting down...")
        await scheduler.stop()

    app = FastAPI(
        title="3I/ATLAS Watch",
        description="Aggregated, categorized and cross-checked coverage of interstellar object 3I/ATLAS",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    for module in (articles, sources, notifications, collection):
        app.include_router(module.router, prefix="/api/v1")
    return app


app = create_app()


# CLI Runner
async def run_once(analyze: bool = False):
    """Run one collection cycle (and optionally the deep analysis batch) without the server."""
    settings = get_settings()
    services = build_services(settings)
    report = await services["pipeline"].run_cycle()

    print("\n" + "=" * 60)
    print("3I/ATLAS COLLECTION")
    print("=" * 60)
    print(f"Fetched:         {report.fetched}")
    print(f"Inserted:        {report.inserted}")
    print(f"Duplicates:      {report.duplicates}")
    print(f"Failed:          {report.failed}")
    print(f"New sources:     {report.sources_created}")

    if analyze:
        stats = await services["engine"].analyze_pending()
        print(f"Analyzed:        {stats['articles']} articles, {stats['claims']} claims, "
              f"{stats['contradictions']} contradictions")
    print("=" * 60 + "\n")


def main():
    """Entry point for CLI."""
    import argparse

    parser = argparse.ArgumentParser(description="3I/ATLAS Watch")
    parser.add_argument("--server", action="store_true", help="Start the FastAPI server")
    parser.add_argument("--port", type=int, default=8000, help="Server port (default: 8000)")
    parser.add_argument("--analyze", action="store_true", help="Also run claim analysis after collecting")
    args = parser.parse_args()

    if args.server:
        import uvicorn
        logger.info(f"Starting server on port {args.port}...")
        uvicorn.run(app, host="0.0.0.0", port=args.port)
    else:
        asyncio.run(run_once(analyze=args.analyze))


if __name__ == "__main__":
    main()
