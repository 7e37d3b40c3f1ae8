"""FastAPI dependency injection -- Depends() patterns using app.state from lifespan."""

from typing import Annotated

from fastapi import Depends, Request

from atlas_watch.analysis import ClaimAnalysisEngine
from atlas_watch.config import Settings
from atlas_watch.database import Database
from atlas_watch.news import IngestionPipeline
from atlas_watch.notifications import NotificationService
from atlas_watch.scheduler import CollectionScheduler


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def get_engine(request: Request) -> ClaimAnalysisEngine:
    return request.app.state.engine


def get_notifications(request: Request) -> NotificationService:
    return request.app.state.notifications


def get_scheduler(request: Request) -> CollectionScheduler:
    return request.app.state.scheduler


# Type aliases for cleaner route signatures
DB = Annotated[Database, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Pipeline = Annotated[IngestionPipeline, Depends(get_pipeline)]
Engine = Annotated[ClaimAnalysisEngine, Depends(get_engine)]
Notifications = Annotated[NotificationService, Depends(get_notifications)]
Scheduler = Annotated[CollectionScheduler, Depends(get_scheduler)]
