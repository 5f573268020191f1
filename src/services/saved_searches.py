"""
Saved search filters and per-user search history

State is kept in memory and written through to a SearchStore after every
mutation. Storage failures are logged and the in-memory state keeps
serving searches.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ..search.config import SearchConfig
from ..search.models import (
    AmountRange, FilterUsage, SavedSearchFilter, SavedSearchFilterCreate,
    SavedSearchFilterUpdate, SearchFilterCriteria, SearchHistoryEntry,
    SearchSource, SearchStatistics, TermCount
)
from ..search.storage import SearchStore

logger = logging.getLogger(__name__)

# Update fields a client may explicitly clear with null
NULLABLE_FILTER_FIELDS = {"description"}


def default_filter_presets(user_id: str) -> List[SavedSearchFilterCreate]:
    """Public presets seeded when no saved filters exist"""
    return [
        SavedSearchFilterCreate(
            name="Urgent Orders",
            description="All urgent priority purchase orders",
            user_id=user_id,
            is_public=True,
            is_default=True,
            filters=SearchFilterCriteria(priorities=[SearchConfig.URGENT_PRIORITY]),
            tags=["urgent", "priority"]
        ),
        SavedSearchFilterCreate(
            name="Pending Approvals",
            description="Orders awaiting manager approval",
            user_id=user_id,
            is_public=True,
            is_default=True,
            filters=SearchFilterCriteria(statuses=["PENDING_APPROVAL"]),
            tags=["approval", "pending"]
        ),
        SavedSearchFilterCreate(
            name="Overdue Confirmations",
            description="Orders with overdue supplier confirmations",
            user_id=user_id,
            is_public=True,
            is_default=True,
            filters=SearchFilterCriteria(statuses=["CONFIRMATION_OVERDUE"]),
            tags=["overdue", "supplier"]
        ),
        SavedSearchFilterCreate(
            name="High Value Orders",
            description=f"Orders over ${SearchConfig.HIGH_VALUE_THRESHOLD:,.0f}",
            user_id=user_id,
            is_public=True,
            is_default=True,
            filters=SearchFilterCriteria(amount_range=AmountRange(
                min=SearchConfig.HIGH_VALUE_THRESHOLD,
                max=SearchConfig.HIGH_VALUE_CEILING
            )),
            tags=["high-value", "financial"]
        ),
        SavedSearchFilterCreate(
            name="Glass Specialist Orders",
            description="Orders from glass specialist suppliers",
            user_id=user_id,
            is_public=True,
            is_default=True,
            filters=SearchFilterCriteria(text_search="glass specialist"),
            tags=["glass", "specialist"]
        ),
    ]


class SavedSearchService:
    """Service for managing saved filters and search history"""

    def __init__(
        self,
        store: SearchStore,
        user_id: str = SearchConfig.DEFAULT_USER_ID,
        history_cap: int = SearchConfig.HISTORY_CAP,
        clock: Optional[Callable[[], datetime]] = None,
        seed_defaults: bool = True
    ):
        self.store = store
        self.user_id = user_id
        self.history_cap = history_cap
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self._filters: Dict[str, SavedSearchFilter] = {}
        self._history: List[SearchHistoryEntry] = []  # newest first

        # An aggregate that could not be read is never written back, so a
        # read failure cannot overwrite what the store already holds.
        self._filters_loaded = self._load_filters()
        self._history_loaded = self._load_history()
        if seed_defaults:
            self.seed_default_filters()

    def _load_filters(self) -> bool:
        """Merge stored filters under the in-memory ones"""
        try:
            stored = self.store.load_filters()
        except Exception as e:
            logger.error(f"Error loading saved filters: {e}")
            return False

        for saved in stored:
            if saved.id not in self._filters:
                self._filters[saved.id] = saved
        return True

    def _load_history(self) -> bool:
        """Merge stored history with entries recorded since startup"""
        try:
            stored = self.store.load_history()
        except Exception as e:
            logger.error(f"Error loading search history: {e}")
            return False

        known = {entry.id for entry in self._history}
        self._history.extend(entry for entry in stored if entry.id not in known)
        self._history.sort(key=lambda entry: entry.timestamp, reverse=True)
        self._evict_over_cap()
        return True

    def _ensure_filters_loaded(self) -> bool:
        if not self._filters_loaded:
            self._filters_loaded = self._load_filters()
        return self._filters_loaded

    def _ensure_history_loaded(self) -> bool:
        if not self._history_loaded:
            self._history_loaded = self._load_history()
        return self._history_loaded

    def _persist_filters(self) -> bool:
        if not self._ensure_filters_loaded():
            logger.warning("Saved filters kept in memory only: stored filters could not be read")
            return False
        try:
            self.store.save_filters(list(self._filters.values()))
            return True
        except Exception as e:
            logger.error(f"Error saving filters: {e}")
            return False

    def _persist_history(self) -> bool:
        if not self._ensure_history_loaded():
            logger.warning("Search history kept in memory only: stored history could not be read")
            return False
        try:
            self.store.save_history(list(self._history))
            return True
        except Exception as e:
            logger.error(f"Error saving search history: {e}")
            return False

    # Saved filters

    def seed_default_filters(self) -> int:
        """Create the default public presets if no filters exist"""
        if not self._filters_loaded:
            logger.warning("Skipping default filters: stored filters could not be read")
            return 0
        if self._filters:
            return 0

        for preset in default_filter_presets(self.user_id):
            self._create(preset)

        self._persist_filters()
        logger.info(f"Seeded {len(self._filters)} default search filters")
        return len(self._filters)

    def _create(self, data: SavedSearchFilterCreate) -> SavedSearchFilter:
        now = self.clock()
        saved = SavedSearchFilter(
            name=data.name,
            description=data.description,
            user_id=data.user_id or self.user_id,
            is_public=data.is_public,
            is_default=data.is_default,
            filters=data.filters.model_copy(deep=True),
            tags=list(data.tags),
            usage_count=0,
            last_used=now,
            created_at=now,
            updated_at=now
        )
        self._filters[saved.id] = saved
        return saved

    def save_filter(self, data: SavedSearchFilterCreate) -> str:
        """Save a new filter preset and return its id"""
        saved = self._create(data)
        self._persist_filters()
        logger.info(f"Saved filter: {saved.name}")
        return saved.id

    def update_filter(self, filter_id: str, updates: SavedSearchFilterUpdate) -> bool:
        """Apply the fields set on updates; False when the filter is unknown"""
        saved = self._filters.get(filter_id)
        if not saved:
            return False

        changes = updates.model_dump(exclude_unset=True)
        changes = {
            field: value for field, value in changes.items()
            if value is not None or field in NULLABLE_FILTER_FIELDS
        }
        if "filters" in changes:
            changes["filters"] = updates.filters.model_copy(deep=True)
        changes["updated_at"] = self.clock()

        self._filters[filter_id] = saved.model_copy(update=changes)
        self._persist_filters()
        return True

    def delete_filter(self, filter_id: str) -> bool:
        """Delete a saved filter"""
        if self._filters.pop(filter_id, None) is None:
            return False
        self._persist_filters()
        return True

    def get_filter(self, filter_id: str) -> Optional[SavedSearchFilter]:
        return self._filters.get(filter_id)

    def apply_saved_filter(self, filter_id: str) -> Optional[SavedSearchFilter]:
        """
        Mark a saved filter as used and return it for execution

        Increments the usage counter and sets last_used to now.
        """
        saved = self._filters.get(filter_id)
        if not saved:
            return None

        applied = saved.model_copy(update={
            "usage_count": saved.usage_count + 1,
            "last_used": self.clock()
        })
        self._filters[filter_id] = applied
        self._persist_filters()
        return applied

    def get_saved_filters(self, user_id: Optional[str] = None) -> List[SavedSearchFilter]:
        """Filters owned by the user plus every public filter"""
        self._ensure_filters_loaded()
        user_id = user_id or self.user_id
        return [
            saved for saved in self._filters.values()
            if saved.user_id == user_id or saved.is_public
        ]

    # Search history

    def record_search(
        self,
        search_term: str = "",
        filters: Optional[SearchFilterCriteria] = None,
        result_count: int = 0,
        search_duration: float = 0.0,
        source: SearchSource = SearchSource.MANUAL,
        user_id: Optional[str] = None
    ) -> SearchHistoryEntry:
        """
        Append a search to the history

        Only the newest history_cap entries per user are kept.
        """
        entry = SearchHistoryEntry(
            user_id=user_id or self.user_id,
            search_term=search_term or "",
            filters=filters.model_copy(deep=True) if filters else SearchFilterCriteria(),
            result_count=result_count,
            search_duration=search_duration,
            selected_results=[],
            timestamp=self.clock(),
            source=source
        )
        self.add_history_entry(entry)
        return entry

    def add_history_entry(self, entry: SearchHistoryEntry) -> None:
        """Insert a prepared history entry and evict past the per-user cap"""
        self._history.insert(0, entry)
        self._history.sort(key=lambda item: item.timestamp, reverse=True)
        self._evict_over_cap()
        self._persist_history()

    def _evict_over_cap(self) -> None:
        kept = []
        per_user: Counter = Counter()
        for item in self._history:
            per_user[item.user_id] += 1
            if per_user[item.user_id] <= self.history_cap:
                kept.append(item)

        evicted = len(self._history) - len(kept)
        if evicted:
            logger.debug(f"Evicted {evicted} history entries over the cap of {self.history_cap}")
        self._history = kept

    def mark_search_result_selected(self, history_id: str, record_id: str) -> bool:
        """Remember that a result of a past search was opened"""
        for index, entry in enumerate(self._history):
            if entry.id == history_id:
                self._history[index] = entry.model_copy(update={
                    "selected_results": entry.selected_results + [str(record_id)]
                })
                self._persist_history()
                return True
        return False

    def get_search_history(self, user_id: Optional[str] = None, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        """Newest-first history of a user"""
        self._ensure_history_loaded()
        user_id = user_id or self.user_id
        history = [entry for entry in self._history if entry.user_id == user_id]
        return history[:limit] if limit else history

    def get_search_statistics(self, user_id: Optional[str] = None) -> SearchStatistics:
        """Usage statistics over a user's history and filters"""
        user_id = user_id or self.user_id
        history = self.get_search_history(user_id)

        average_search_time = (
            sum(entry.search_duration for entry in history) / len(history)
            if history else 0.0
        )

        term_counts = Counter(entry.search_term for entry in history if entry.search_term)
        most_popular_terms = [
            TermCount(term=term, count=count)
            for term, count in sorted(term_counts.items(), key=lambda item: item[1], reverse=True)[:5]
        ]

        own_filters = [saved for saved in self._filters.values() if saved.user_id == user_id]
        most_used_filters = [
            FilterUsage(name=saved.name, usage_count=saved.usage_count)
            for saved in sorted(own_filters, key=lambda saved: saved.usage_count, reverse=True)[:5]
        ]

        search_success_rate = (
            sum(1 for entry in history if entry.result_count > 0) / len(history) * 100
            if history else 0.0
        )

        return SearchStatistics(
            total_searches=len(history),
            average_search_time=average_search_time,
            most_popular_terms=most_popular_terms,
            most_used_filters=most_used_filters,
            search_success_rate=search_success_rate,
            saved_filters_count=len(own_filters)
        )
