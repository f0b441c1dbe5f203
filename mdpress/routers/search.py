from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from mdpress.config import Settings
from mdpress.models.api import SearchHit, SearchResponse, SearchStatsOut
from mdpress.routers.dependencies import get_search_engine, get_settings
from mdpress.services.search_engine import SearchEngine


router = APIRouter(prefix="/api/search")


@router.get("", response_model=SearchResponse, name="search")
def search(
    q: str = Query("", max_length=200),
    limit: Optional[int] = Query(None, ge=1, le=100),
    engine: SearchEngine = Depends(get_search_engine),
    settings: Settings = Depends(get_settings),
) -> SearchResponse:
    records = engine.search(q, limit or settings.search_limit)
    hits = [
        SearchHit.from_record(
            record,
            title=engine.highlight_html(record.title, q),
            excerpt=engine.highlight_html(record.excerpt, q) if record.excerpt else None,
        )
        for record in records
    ]
    return SearchResponse(query=q, total=len(hits), results=hits)


@router.get("/suggestions", response_model=list[str], name="search_suggestions")
def suggestions(
    q: str = Query("", max_length=200),
    limit: int = Query(5, ge=1, le=50),
    engine: SearchEngine = Depends(get_search_engine),
) -> list[str]:
    return engine.suggestions(q, limit)


@router.get("/popular", response_model=list[str], name="popular_search_terms")
def popular(
    limit: int = Query(10, ge=1, le=50),
    engine: SearchEngine = Depends(get_search_engine),
) -> list[str]:
    return engine.popular_terms(limit)


@router.get("/stats", response_model=SearchStatsOut, name="search_stats")
def stats(engine: SearchEngine = Depends(get_search_engine)) -> SearchStatsOut:
    return SearchStatsOut.from_stats(engine.stats(), engine.index.last_updated)
