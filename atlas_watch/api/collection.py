"""Collection router -- manual ingestion/analysis triggers and scheduler status."""

import logging

from fastapi import APIRouter

from atlas_watch.api.dependencies import Engine, Pipeline, Scheduler
from atlas_watch.api.schemas import AnalysisRunResponse, CollectionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/collection/run", response_model=CollectionResponse)
async def run_collection(pipeline: Pipeline):
    """Run one ingestion cycle now; reports skipped=True if a cycle is already running."""
    logger.info("[API] Manual collection triggered")
    report = await pipeline.run_cycle()
    return CollectionResponse(**report.model_dump(include=set(CollectionResponse.model_fields)))


@router.post("/analysis/run", response_model=AnalysisRunResponse)
async def run_analysis(engine: Engine, limit: int = 5):
    logger.info(f"[API] Manual analysis triggered (limit={limit})")
    stats = await engine.analyze_pending(limit=limit)
    return AnalysisRunResponse(**stats)


@router.get("/scheduler/status")
async def scheduler_status(scheduler: Scheduler, pipeline: Pipeline):
    status = scheduler.status()
    status["ingestion_running"] = pipeline.is_running
    last = pipeline.last_report
    status["last_ingestion"] = last.model_dump(mode="json") if last else None
    return status
