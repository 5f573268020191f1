"""
Search Engine Core for purchase orders
Filtering, relevance ranking, pagination, suggestions and history tracking
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from ..services.saved_searches import SavedSearchService
from .config import SearchConfig
from .filters import FilterEngine
from .indexer import InvertedIndex
from .models import (
    IndexingStats, SavedSearchFilter, SearchQuery, SearchResponse,
    SearchResult, SearchSource, SearchSuggestion
)
from .ranking import ResultRanker
from .scoring import RelevanceScorer
from .storage import InMemorySearchStore, SearchStore
from .suggestions import SuggestionGenerator
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)

RecordSource = Callable[[], Iterable[Any]]


class SearchEngine:
    """
    Purchase order search service for one tenant

    Built once and passed to whoever needs it. The record source returns a
    read-only snapshot of the tenant's orders on every call.
    """

    def __init__(
        self,
        store: Optional[SearchStore] = None,
        record_source: Optional[RecordSource] = None,
        supplier_source: Optional[RecordSource] = None,
        user_id: str = SearchConfig.DEFAULT_USER_ID,
        scorer: Optional[RelevanceScorer] = None,
        clock: Optional[Callable[[], datetime]] = None,
        history_cap: int = SearchConfig.HISTORY_CAP
    ):
        """Initialize search engine with storage and record sources"""
        self.record_source = record_source or (lambda: [])
        self.supplier_source = supplier_source
        self.user_id = user_id

        self.tokenizer = Tokenizer()
        self.index = InvertedIndex(self.tokenizer)
        self.filter_engine = FilterEngine()
        self.scorer = scorer or RelevanceScorer(tokenizer=self.tokenizer, clock=clock)
        self.ranker = ResultRanker()
        self.suggestion_generator = SuggestionGenerator()
        self.saved_searches = SavedSearchService(
            store or InMemorySearchStore(),
            user_id=user_id,
            history_cap=history_cap,
            clock=clock
        )

    def _snapshot(self) -> List[Any]:
        try:
            return list(self.record_source())
        except Exception as e:
            logger.error(f"Error reading purchase orders: {e}")
            return []

    def _suppliers(self) -> Optional[List[Any]]:
        if self.supplier_source is None:
            return None
        try:
            return list(self.supplier_source())
        except Exception as e:
            logger.error(f"Error reading suppliers: {e}")
            return None

    # Query API

    def perform_search(self, query: SearchQuery) -> SearchResponse:
        """
        Main search method

        Filters narrow the candidates, the phrase (if any) scores them,
        results are sorted and paged, suggestions are generated and the
        search is recorded in history.

        Args:
            query: Search query with text, filters, sorting and pagination

        Returns:
            SearchResponse with the requested page and total count
        """
        start_time = time.perf_counter()
        records = self._snapshot()

        candidates, applied_filters = self.filter_engine.apply_filters(records, query.filters)

        phrase = (query.text_search or "").strip()
        if phrase:
            results = self.score_records(candidates, phrase)
            applied_filters.append(f'Text: "{phrase}"')
        else:
            results = [
                SearchResult(record=record, relevance_score=1.0, match_reasons=[], search_snippets=[])
                for record in candidates
            ]

        results = self.ranker.rank(results, query.sort_by, query.sort_direction)
        page, total_count = self.ranker.paginate(results, query.limit, query.offset)

        suggestions = self._generate_suggestions(phrase, records)

        search_duration = (time.perf_counter() - start_time) * 1000

        entry = self.saved_searches.record_search(
            search_term=phrase,
            filters=query.filters,
            result_count=total_count,
            search_duration=search_duration,
            source=query.source
        )

        logger.info(
            f"Search completed: {len(page)} results in {search_duration:.1f}ms "
            f"(query: '{phrase}', total_found: {total_count})"
        )

        return SearchResponse(
            results=page,
            total_count=total_count,
            search_duration=search_duration,
            suggestions=suggestions,
            applied_filters=applied_filters,
            history_id=entry.id
        )

    def score_records(self, records: Iterable[Any], phrase: str) -> List[SearchResult]:
        """Score every record and keep the ones with a positive score"""
        results = []
        for record in records:
            match = self.scorer.score(record, phrase)
            if match.score > 0:
                results.append(SearchResult(
                    record=record,
                    relevance_score=match.score,
                    match_reasons=match.match_reasons,
                    search_snippets=match.snippets
                ))
        return results

    def search_saved_filter(
        self,
        filter_id: str,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> Optional[SearchResponse]:
        """Apply a saved filter (tracking its usage) and run it"""
        saved = self.saved_searches.apply_saved_filter(filter_id)
        if saved is None:
            return None

        return self.perform_search(SearchQuery(
            text_search=saved.filters.text_search,
            filters=saved.filters,
            limit=limit,
            offset=offset,
            source=SearchSource.SAVED_FILTER
        ))

    def suggest(self, partial_phrase: str) -> List[SearchSuggestion]:
        """Suggestions for a partial phrase without running a search"""
        return self._generate_suggestions((partial_phrase or "").strip(), self._snapshot())

    def _generate_suggestions(self, phrase: str, records: List[Any]) -> List[SearchSuggestion]:
        return self.suggestion_generator.suggest(
            phrase,
            history=self.saved_searches.get_search_history(self.user_id),
            saved_filters=self.saved_searches.get_saved_filters(self.user_id),
            records=records,
            suppliers=self._suppliers()
        )

    # Index maintenance

    def rebuild_index(self) -> IndexingStats:
        """Rebuild the inverted index from a fresh record snapshot"""
        return self.index.rebuild(self._snapshot())

    def add_to_index(self, record: Any) -> bool:
        return self.index.add(record)

    def remove_from_index(self, record_id: Any) -> bool:
        return self.index.remove(record_id)

    def lookup_tokens(self, text: str, match_all: bool = True) -> List[str]:
        """Record ids whose indexed text holds the tokens of text"""
        return sorted(self.index.search(self.tokenizer.tokenize(text), match_all=match_all))

    # Saved filters and history

    def get_saved_filters(self, user_id: Optional[str] = None) -> List[SavedSearchFilter]:
        return self.saved_searches.get_saved_filters(user_id)
