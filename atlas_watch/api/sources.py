"""Sources and alerts router."""

from typing import List

from fastapi import APIRouter, HTTPException, Query

from atlas_watch.api.dependencies import DB
from atlas_watch.api.schemas import AlertResponse, SourcePriorUpdate, SourceResponse

router = APIRouter()


@router.get("/sources", response_model=List[SourceResponse])
async def active_sources(db: DB):
    return db.get_active_sources()


@router.put("/sources/{source_id}/credibility", response_model=SourceResponse)
async def update_source_prior(source_id: int, body: SourcePriorUpdate, db: DB):
    """Admin edit of a publisher's credibility prior. Already stored articles keep their score."""
    if not db.set_source_prior(source_id, body.credibility_score):
        raise HTTPException(status_code=404, detail=f"Source {source_id} not found")
    return db.get_source(source_id)


@router.get("/alerts/recent", response_model=List[AlertResponse])
async def recent_alerts(db: DB, limit: int = Query(10, ge=1, le=50)):
    return db.get_recent_alerts(limit=limit)
