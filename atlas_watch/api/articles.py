"""Articles API router -- latest coverage, filtered by category or source."""

from typing import List

from fastapi import APIRouter, HTTPException, Query

from atlas_watch.api.dependencies import DB
from atlas_watch.api.schemas import ArticleResponse
from atlas_watch.schemas import Category

router = APIRouter()

# Reads are capped at 100 rows per request
MAX_ARTICLES = 100


@router.get("/articles/latest", response_model=List[ArticleResponse])
async def latest_articles(db: DB, limit: int = Query(20, ge=1, le=MAX_ARTICLES)):
    return db.get_latest_articles(limit=limit)


@router.get("/articles/category/{category}", response_model=List[ArticleResponse])
async def articles_by_category(category: Category, db: DB, limit: int = Query(20, ge=1, le=MAX_ARTICLES)):
    return db.get_articles_by_category(category, limit=limit)


@router.get("/articles/source/{source_id}", response_model=List[ArticleResponse])
async def articles_by_source(source_id: int, db: DB, limit: int = Query(20, ge=1, le=MAX_ARTICLES)):
    return db.get_articles_by_source(source_id, limit=limit)


@router.get("/articles/{article_id}", response_model=ArticleResponse)
async def get_article(article_id: int, db: DB):
    article = db.get_article(article_id)
    if not article:
        raise HTTPException(status_code=404, detail=f"Article {article_id} not found")
    return article
