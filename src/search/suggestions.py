"""
Autocomplete suggestions from search history, known entities,
statuses and saved filters
"""

import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import SearchConfig
from .models import SavedSearchFilter, SearchHistoryEntry, SearchSuggestion, SuggestionType
from .records import get_field, get_text, is_absent, to_number

logger = logging.getLogger(__name__)


class SuggestionGenerator:
    """Builds ranked suggestion lists for a partial phrase"""

    def __init__(
        self,
        known_statuses: Sequence[str] = SearchConfig.KNOWN_STATUSES,
        max_suggestions: int = SearchConfig.MAX_SUGGESTIONS,
        recent_history: int = SearchConfig.RECENT_HISTORY_FOR_SUGGESTIONS
    ):
        self.known_statuses = tuple(known_statuses)
        self.max_suggestions = max_suggestions
        self.recent_history = recent_history

    def suggest(
        self,
        partial_phrase: str,
        history: Sequence[SearchHistoryEntry] = (),
        saved_filters: Iterable[SavedSearchFilter] = (),
        records: Sequence[Any] = (),
        suppliers: Optional[Sequence[Any]] = None
    ) -> List[SearchSuggestion]:
        """
        Merge every suggestion source and rank by confidence*100 + usage

        Args:
            partial_phrase: What the user has typed so far
            history: The user's search history
            saved_filters: Saved filters visible to the user
            records: Current record snapshot, for status and entity counts
            suppliers: Optional supplier catalog; derived from records when None

        Returns:
            At most max_suggestions suggestions, best first
        """
        phrase = (partial_phrase or "").strip().lower()

        sources = [
            ("history", lambda: self._history_suggestions(phrase, history)),
            ("suppliers", lambda: self._supplier_suggestions(phrase, records, suppliers)),
            ("customers", lambda: self._customer_suggestions(phrase, records)),
            ("statuses", lambda: self._status_suggestions(phrase, records)),
            ("saved filters", lambda: self._filter_suggestions(phrase, saved_filters)),
        ]

        suggestions: List[SearchSuggestion] = []
        for name, generate in sources:
            try:
                suggestions.extend(list(generate()))
            except Exception as e:
                logger.error(f"Error generating {name} suggestions for '{partial_phrase}': {e}")

        suggestions.sort(key=lambda suggestion: suggestion.rank_weight, reverse=True)
        return suggestions[:self.max_suggestions]

    def _history_suggestions(
        self,
        phrase: str,
        history: Sequence[SearchHistoryEntry]
    ) -> List[SearchSuggestion]:
        """Recent terms where either string contains the other"""
        recent = sorted(history, key=lambda entry: entry.timestamp, reverse=True)[:self.recent_history]

        suggestions = []
        seen = set()
        for entry in recent:
            term = entry.search_term.strip()
            term_lower = term.lower()
            if not term or term_lower in seen:
                continue
            if phrase in term_lower or term_lower in phrase:
                seen.add(term_lower)
                suggestions.append(SearchSuggestion(
                    type=SuggestionType.TERM,
                    value=term,
                    label=term,
                    description=f"{entry.result_count} results",
                    confidence=0.8,
                    usage_frequency=1,
                    last_used=entry.timestamp
                ))
        return suggestions

    def _supplier_suggestions(
        self,
        phrase: str,
        records: Sequence[Any],
        suppliers: Optional[Sequence[Any]]
    ) -> List[SearchSuggestion]:
        """Suppliers whose name contains the phrase, weighted by order volume"""
        order_counts = Counter(
            get_text(record, "supplier.id") for record in records
            if get_text(record, "supplier.id")
        )

        if suppliers is None:
            catalog: Dict[str, str] = {}
            for record in records:
                supplier_id = get_text(record, "supplier.id")
                name = get_text(record, "supplier.supplier_name")
                if supplier_id and name and supplier_id not in catalog:
                    catalog[supplier_id] = name
            entries = [(supplier_id, name, order_counts[supplier_id]) for supplier_id, name in catalog.items()]
        else:
            entries = []
            for supplier in suppliers:
                supplier_id = get_text(supplier, "id")
                name = get_text(supplier, "supplier_name") or get_text(supplier, "name")
                total = to_number(get_field(supplier, "total_orders_count"))
                frequency = total if total is not None else order_counts.get(supplier_id, 0)
                entries.append((supplier_id, name, frequency))

        suggestions = []
        for supplier_id, name, frequency in entries:
            if name and phrase in name.lower():
                suggestions.append(SearchSuggestion(
                    type=SuggestionType.SUPPLIER,
                    value=supplier_id or name,
                    label=name,
                    description=f"Filter by supplier: {name}",
                    confidence=0.9,
                    usage_frequency=frequency
                ))
        return suggestions

    def _customer_suggestions(self, phrase: str, records: Sequence[Any]) -> List[SearchSuggestion]:
        """Customers whose name contains the phrase, weighted by order volume"""
        names: Dict[str, str] = {}
        counts: Counter = Counter()
        for record in records:
            name = get_text(record, "customer_name")
            if not name:
                continue
            customer_id = get_field(record, "customer_id")
            key = name if is_absent(customer_id) else str(customer_id)
            names.setdefault(key, name)
            counts[key] += 1

        suggestions = []
        for key, name in names.items():
            if phrase in name.lower():
                suggestions.append(SearchSuggestion(
                    type=SuggestionType.CUSTOMER,
                    value=key,
                    label=name,
                    description=f"Filter by customer: {name}",
                    confidence=0.9,
                    usage_frequency=counts[key]
                ))
        return suggestions

    def _status_suggestions(self, phrase: str, records: Sequence[Any]) -> List[SearchSuggestion]:
        """Known statuses containing the phrase, weighted by current usage"""
        status_counts = Counter(get_text(record, "status") for record in records)

        suggestions = []
        for status in self.known_statuses:
            if phrase in status.lower():
                label = status.replace("_", " ")
                suggestions.append(SearchSuggestion(
                    type=SuggestionType.STATUS,
                    value=status,
                    label=label,
                    description=f"Filter by status: {label}",
                    confidence=0.7,
                    usage_frequency=status_counts.get(status, 0)
                ))
        return suggestions

    def _filter_suggestions(
        self,
        phrase: str,
        saved_filters: Iterable[SavedSearchFilter]
    ) -> List[SearchSuggestion]:
        """Saved filters matching by name or tag, weighted by usage"""
        suggestions = []
        for saved in saved_filters:
            if phrase in saved.name.lower() or any(phrase in tag.lower() for tag in saved.tags):
                suggestions.append(SearchSuggestion(
                    type=SuggestionType.FILTER,
                    value=saved.id,
                    label=saved.name,
                    description=saved.description or "Saved filter",
                    confidence=0.6,
                    usage_frequency=saved.usage_count,
                    last_used=saved.last_used
                ))
        return suggestions
