from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional
import logging

from ..search.engine import SearchEngine
from ..search.models import (
    IndexingStats, SavedSearchFilter, SavedSearchFilterCreate, SavedSearchFilterUpdate,
    SearchHistoryEntry, SearchQuery, SearchResponse, SearchStatistics, SearchSuggestion
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/search", tags=["search"])

_engine: Optional[SearchEngine] = None


def build_search_engine() -> SearchEngine:
    """Wire the engine from the configured connections"""
    from ..database.connection import SessionLocal, get_redis
    from ..search.config import SearchConfig
    from ..search.sources import RedisRecordSource
    from ..search.storage import create_search_store

    redis_client = get_redis()
    store = create_search_store(
        SearchConfig.STORE_BACKEND,
        redis_client=redis_client,
        session_factory=SessionLocal
    )

    return SearchEngine(
        store=store,
        record_source=RedisRecordSource(redis_client, SearchConfig.RECORDS_KEY),
        supplier_source=RedisRecordSource(redis_client, SearchConfig.SUPPLIERS_KEY) if redis_client else None
    )


def get_search_engine() -> SearchEngine:
    """Search engine dependency for FastAPI"""
    global _engine
    if _engine is None:
        _engine = build_search_engine()
    return _engine


@router.post("", response_model=SearchResponse)
async def search_purchase_orders(
    query: SearchQuery,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Run a filtered, ranked and paginated search"""
    return engine.perform_search(query)


@router.get("/suggestions", response_model=List[SearchSuggestion])
async def get_search_suggestions(
    q: str = "",
    engine: SearchEngine = Depends(get_search_engine)
):
    """Autocomplete suggestions for a partial phrase"""
    return engine.suggest(q)


@router.get("/filters", response_model=List[SavedSearchFilter])
async def get_saved_filters(
    user_id: Optional[str] = None,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Saved filters owned by the user plus public ones"""
    return engine.saved_searches.get_saved_filters(user_id)


@router.post("/filters", response_model=SavedSearchFilter, status_code=status.HTTP_201_CREATED)
async def create_saved_filter(
    filter_data: SavedSearchFilterCreate,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Save a filter preset"""
    filter_id = engine.saved_searches.save_filter(filter_data)
    return engine.saved_searches.get_filter(filter_id)


@router.patch("/filters/{filter_id}", response_model=SavedSearchFilter)
async def update_saved_filter(
    filter_id: str,
    updates: SavedSearchFilterUpdate,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Update a saved filter"""
    if not engine.saved_searches.update_filter(filter_id, updates):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Saved filter not found"
        )
    return engine.saved_searches.get_filter(filter_id)


@router.delete("/filters/{filter_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_saved_filter(
    filter_id: str,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Delete a saved filter"""
    if not engine.saved_searches.delete_filter(filter_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Saved filter not found"
        )


@router.post("/filters/{filter_id}/apply", response_model=SearchResponse)
async def apply_saved_filter(
    filter_id: str,
    limit: Optional[int] = None,
    offset: int = 0,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Run a saved filter and track its usage"""
    response = engine.search_saved_filter(filter_id, limit=limit, offset=offset)
    if response is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Saved filter not found"
        )
    return response


@router.get("/history", response_model=List[SearchHistoryEntry])
async def get_search_history(
    limit: Optional[int] = None,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Newest-first search history of the current user"""
    return engine.saved_searches.get_search_history(limit=limit)


@router.post("/history/{history_id}/selected", status_code=status.HTTP_204_NO_CONTENT)
async def mark_result_selected(
    history_id: str,
    record_id: str,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Record that a result of a past search was opened"""
    if not engine.saved_searches.mark_search_result_selected(history_id, record_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Search history entry not found"
        )


@router.get("/stats", response_model=SearchStatistics)
async def get_search_statistics(engine: SearchEngine = Depends(get_search_engine)):
    """Search usage statistics for the current user"""
    return engine.saved_searches.get_search_statistics()


@router.post("/index/rebuild", response_model=IndexingStats)
def rebuild_search_index(engine: SearchEngine = Depends(get_search_engine)):
    """Rebuild the inverted index from the current order snapshot"""
    stats = engine.rebuild_index()
    logger.info(f"Index rebuild requested: {stats.indexed_records} records indexed")
    return stats
