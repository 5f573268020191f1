"""
Unit tests for SearchEngine core functionality
"""

from unittest.mock import Mock

import pytest
from conftest import make_order

from src.search.engine import SearchEngine
from src.search.models import (
    AmountRange, CustomFilter, SearchFilterCriteria, SearchQuery,
    SearchSource, SuggestionType
)
from src.search.sources import StaticRecordSource
from src.search.storage import InMemorySearchStore


def _ids(response):
    return [result.record["id"] for result in response.results]


class TestSearchEngine:
    """Test SearchEngine functionality"""

    @pytest.fixture(autouse=True)
    def setup_engine(self, sample_orders, fixed_clock):
        """Setup test fixtures"""
        self.store = InMemorySearchStore()
        self.source = StaticRecordSource(sample_orders)
        self.engine = SearchEngine(
            store=self.store,
            record_source=self.source,
            user_id="u1",
            clock=fixed_clock
        )

    def test_empty_query_returns_everything(self):
        """Test a search without text or filters"""
        response = self.engine.perform_search(SearchQuery())

        assert response.total_count == 3
        assert sorted(_ids(response)) == ["PO-1", "PO-2", "PO-3"]
        assert all(result.relevance_score == 1.0 for result in response.results)
        assert response.applied_filters == []
        assert response.search_duration >= 0

    def test_text_search_ranks_by_relevance(self):
        """Test boosted records rank first"""
        response = self.engine.perform_search(SearchQuery(text_search="hardware"))

        assert _ids(response) == ["PO-1", "PO-3"]
        assert response.total_count == 2
        assert response.results[0].relevance_score == pytest.approx(16 * 1.2 * 1.3)
        assert response.results[1].relevance_score == pytest.approx(16.0)
        assert response.results[0].match_reasons[0].field == "supplier_name"
        assert response.applied_filters == ['Text: "hardware"']

    def test_results_are_positive_and_sorted(self):
        response = self.engine.perform_search(SearchQuery(text_search="tempered"))

        scores = [result.relevance_score for result in response.results]
        assert all(score > 0 for score in scores)
        assert scores == sorted(scores, reverse=True)
        assert sorted(_ids(response)) == ["PO-1", "PO-2"]

    def test_no_matches(self):
        response = self.engine.perform_search(SearchQuery(text_search="mirror"))

        assert response.results == []
        assert response.total_count == 0
        assert self.engine.saved_searches.get_search_history()[0].result_count == 0

    def test_filters_and_text(self):
        """Test filters narrow the candidates before scoring"""
        query = SearchQuery(
            text_search="hardware",
            filters=SearchFilterCriteria(statuses=["DRAFT"])
        )

        response = self.engine.perform_search(query)

        assert _ids(response) == ["PO-3"]
        assert response.applied_filters == ["Status: DRAFT", 'Text: "hardware"']

    def test_high_value_filter(self):
        query = SearchQuery(filters=SearchFilterCriteria(
            amount_range=AmountRange(min=10000, max=999999999)
        ))

        response = self.engine.perform_search(query)

        assert _ids(response) == ["PO-2"]
        assert response.applied_filters == ["Amount: $10,000 - $999,999,999"]

    def test_custom_filter(self):
        query = SearchQuery(filters=SearchFilterCriteria(custom_filters=[
            CustomFilter(field="total_amount", operator="lessThan", value=1000)
        ]))

        assert _ids(self.engine.perform_search(query)) == ["PO-3"]

    def test_sort_by_date_newest_first(self):
        response = self.engine.perform_search(SearchQuery(sort_by="DATE", sort_direction="DESC"))
        assert _ids(response) == ["PO-1", "PO-2", "PO-3"]

    def test_sort_by_amount_ascending(self):
        response = self.engine.perform_search(SearchQuery(sort_by="AMOUNT", sort_direction="ASC"))
        assert _ids(response) == ["PO-3", "PO-1", "PO-2"]

    def test_pagination(self):
        """Test total count covers every match while the page is limited"""
        first = self.engine.perform_search(SearchQuery(sort_by="DATE", limit=2))
        second = self.engine.perform_search(SearchQuery(sort_by="DATE", limit=2, offset=2))

        assert first.total_count == second.total_count == 3
        assert _ids(first) + _ids(second) == ["PO-1", "PO-2", "PO-3"]

    def test_search_is_recorded(self):
        """Test every search lands in history"""
        response = self.engine.perform_search(SearchQuery(
            text_search="  hardware  ",
            source=SearchSource.SUGGESTION
        ))

        history = self.engine.saved_searches.get_search_history()
        assert len(history) == 1
        assert history[0].id == response.history_id
        assert history[0].search_term == "hardware"
        assert history[0].result_count == 2
        assert history[0].source == SearchSource.SUGGESTION
        assert len(self.store.load_history()) == 1

    def test_response_includes_suggestions(self):
        response = self.engine.perform_search(SearchQuery(text_search="glass"))

        assert SuggestionType.SUPPLIER in {s.type for s in response.suggestions}

    def test_history_feeds_suggestions(self):
        self.engine.perform_search(SearchQuery(text_search="tempered panel"))

        suggestions = self.engine.suggest("temp")

        assert suggestions[0].type == SuggestionType.TERM
        assert suggestions[0].value == "tempered panel"

    def test_search_saved_filter(self):
        """Test running a default preset tracks usage and history source"""
        high_value = next(
            f for f in self.engine.get_saved_filters() if f.name == "High Value Orders"
        )

        response = self.engine.search_saved_filter(high_value.id)

        assert _ids(response) == ["PO-2"]
        assert self.engine.saved_searches.get_filter(high_value.id).usage_count == 1
        assert self.engine.saved_searches.get_search_history()[0].source == SearchSource.SAVED_FILTER

    def test_saved_filter_with_text(self):
        glass = next(
            f for f in self.engine.get_saved_filters() if f.name == "Glass Specialist Orders"
        )

        response = self.engine.search_saved_filter(glass.id)

        assert _ids(response) == ["PO-2"]

    def test_search_unknown_saved_filter(self):
        assert self.engine.search_saved_filter("missing") is None

    def test_new_records_are_visible(self):
        """Test each search reads a fresh snapshot"""
        self.source.replace([make_order(id="PO-7", internal_notes="Mirror panels")])

        response = self.engine.perform_search(SearchQuery(text_search="mirror"))

        assert _ids(response) == ["PO-7"]

    def test_failing_record_source(self, fixed_clock):
        source = Mock(side_effect=ConnectionError("orders unavailable"))
        engine = SearchEngine(record_source=source, clock=fixed_clock)

        response = engine.perform_search(SearchQuery(text_search="glass"))

        assert response.results == []
        assert response.total_count == 0

    def test_failing_supplier_source_falls_back_to_records(self, sample_orders, fixed_clock):
        engine = SearchEngine(
            record_source=StaticRecordSource(sample_orders),
            supplier_source=Mock(side_effect=ConnectionError("suppliers unavailable")),
            clock=fixed_clock
        )

        suggestions = engine.suggest("hardware")

        assert [s.value for s in suggestions if s.type == SuggestionType.SUPPLIER] == ["SUP-1"]

    def test_history_persists_across_engines(self, fixed_clock):
        self.engine.perform_search(SearchQuery(text_search="hardware"))

        other = SearchEngine(store=self.store, record_source=self.source, user_id="u1", clock=fixed_clock)

        assert [e.search_term for e in other.saved_searches.get_search_history()] == ["hardware"]
        assert len(other.get_saved_filters()) == 5

    def test_naive_stored_timestamps(self, fixed_clock):
        """Test history written without a UTC offset sorts with new entries"""
        store = InMemorySearchStore()
        store._history = [{"user_id": "u1", "search_term": "po", "timestamp": "2026-10-01T10:00:00"}]
        engine = SearchEngine(store=store, record_source=self.source, user_id="u1", clock=fixed_clock)

        response = engine.perform_search(SearchQuery(text_search="po"))

        assert response.history_id
        history = engine.saved_searches.get_search_history()
        assert [e.search_term for e in history] == ["po", "po"]
        assert history[1].timestamp.tzinfo is not None

    def test_index_maintenance(self):
        """Test rebuild, incremental add and removal through the engine"""
        stats = self.engine.rebuild_index()

        assert stats.indexed_records == 3
        assert self.engine.lookup_tokens("hardware") == ["PO-1", "PO-3"]
        assert self.engine.lookup_tokens("hardware urgent") == ["PO-1"]
        assert self.engine.lookup_tokens("urgent specialist", match_all=False) == ["PO-1", "PO-2"]

        assert self.engine.add_to_index(make_order(id="PO-8", internal_notes="Frosted glass"))
        assert self.engine.lookup_tokens("frosted") == ["PO-8"]

        assert self.engine.remove_from_index("PO-1")
        assert self.engine.lookup_tokens("hardware") == ["PO-3", "PO-8"]
